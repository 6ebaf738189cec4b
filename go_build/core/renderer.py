"""
main.go Renderer

Generate the entry point that hands a library function to the Lambda runtime.
"""

from pathlib import Path

from jinja2 import Environment, FileSystemLoader

TEMPLATE_DIR = Path(__file__).parent / "templates"


def render_main_go(
    import_path: str,
    module_name: str,
    public_function_name: str,
    path_to_lambda: str,
) -> str:
    """
    Render a main.go file.

    Args:
        import_path: Go import path of the module holding the function
        module_name: package name used to reference the module
        public_function_name: exported function to start
        path_to_lambda: import path of the Lambda runtime package
    """
    env = Environment(
        loader=FileSystemLoader(TEMPLATE_DIR),
        trim_blocks=True,
        lstrip_blocks=True,
        keep_trailing_newline=True,
    )
    template = env.get_template("main.go.j2")

    context = {
        "path_to_lambda": path_to_lambda,
        "runtime_package": path_to_lambda.rstrip("/").rsplit("/", 1)[-1],
        "import_path": import_path,
        "module_name": module_name,
        "public_function_name": public_function_name,
    }

    return template.render(context)


def write_main_go(out_path: Path, content: str) -> None:
    """Write a generated main.go, replacing any previous one."""
    out_path.parent.mkdir(parents=True, exist_ok=True)
    with open(out_path, "w", encoding="utf-8") as f:
        f.write(content)
