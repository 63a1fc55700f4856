"""Test fixtures for repoctx.

Sample projects are described as ``{relative_path: content}`` mappings and
materialized under a temporary directory, so excluded directories such as
node_modules never have to be checked in.

Sample Projects:
- SAMPLE_PROJECT_FILES: A small web service with migrations, configs and docs
"""

from pathlib import Path

# Path to fixtures directory
FIXTURES_DIR = Path(__file__).parent

SAMPLE_PROJECT_FILES: dict[str, str] = {
    "README.md": "# Orders service\n\nHandles orders. See the docs folder.\n",
    "appsettings.json": '{"ConnectionStrings": {"Default": "Server=db"}}\n',
    "config/logging.yaml": "level: info\n",
    "db/Migration001.sql": (
        "-- database migration 001\n"
        "CREATE TABLE orders (id INT PRIMARY KEY);\n"
        "-- migration adds the orders table\n"
    ),
    "db/Migration002.sql": "ALTER TABLE orders ADD total DECIMAL;\n",
    "src/orders/service.py": (
        "class OrderService:\n"
        "    def place(self, order):\n"
        "        return order\n"
    ),
    "src/orders/models.py": "class Order:\n    pass\n",
    "src/payments/gateway.py": "def charge(amount):\n    return amount\n",
    "node_modules/left-pad/index.js": "module.exports = function migration() {}\n",
    "bin/Debug/service.dll": "MZ binary migration",
    "build/output.txt": "database migration output\n",
}


def build_tree(root: Path, files: dict[str, str | bytes]) -> Path:
    """Write a file tree under ``root``.

    Args:
        root: Directory to create the files in
        files: Relative POSIX path -> text (or bytes) content

    Returns:
        The root path
    """
    for relative, content in files.items():
        path = root.joinpath(*relative.split("/"))
        path.parent.mkdir(parents=True, exist_ok=True)
        if isinstance(content, bytes):
            path.write_bytes(content)
        else:
            path.write_text(content, encoding="utf-8")
    return root


def build_sample_project(root: Path) -> Path:
    """Materialize the sample web service project under ``root``."""
    return build_tree(root, SAMPLE_PROJECT_FILES)
