from go_build.core.renderer import render_main_go, write_main_go


class TestMainGoRenderer:
    """Tests for the main.go renderer."""

    def test_render_main_go(self):
        result = render_main_go(
            import_path="myservice/handlers/greet",
            module_name="greet",
            public_function_name="Hello",
            path_to_lambda="github.com/aws/aws-lambda-go/lambda",
        )

        assert result == (
            "package main\n"
            "\n"
            "import (\n"
            '    "github.com/aws/aws-lambda-go/lambda"\n'
            '    "myservice/handlers/greet"\n'
            ")\n"
            "\n"
            "func main() {\n"
            "    lambda.Start(greet.Hello)\n"
            "}\n"
        )

    def test_runtime_package_follows_import_path(self):
        result = render_main_go(
            import_path="svc/fn",
            module_name="fn",
            public_function_name="Run",
            path_to_lambda="example.com/vendor/runtime",
        )

        assert '"example.com/vendor/runtime"' in result
        assert "runtime.Start(fn.Run)" in result


class TestWriteMainGo:
    def test_creates_directories(self, tmp_path):
        out_path = tmp_path / "generated" / "greet" / "Hello" / "main.go"

        write_main_go(out_path, "package main\n")

        assert out_path.read_text(encoding="utf-8") == "package main\n"

    def test_rewrite_is_byte_identical(self, tmp_path):
        out_path = tmp_path / "main.go"
        content = render_main_go("svc/fn", "fn", "Run", "github.com/aws/aws-lambda-go/lambda")

        write_main_go(out_path, content)
        first = out_path.read_bytes()
        write_main_go(out_path, content)

        assert out_path.read_bytes() == first

    def test_overwrites_existing_file(self, tmp_path):
        out_path = tmp_path / "main.go"
        out_path.write_text("stale", encoding="utf-8")

        write_main_go(out_path, "fresh\n")

        assert out_path.read_text(encoding="utf-8") == "fresh\n"
