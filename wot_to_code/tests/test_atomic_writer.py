import pytest

from wot_to_code.pipeline.backends import RenderedModule
from wot_to_code.pipeline.errors import CodeValidationError
from wot_to_code.pipeline.writer import AtomicWriter


class TestAtomicWriter:
    """Test cases for validating and atomically writing generated modules"""

    def test_write_all(self, tmp_path):
        modules = [
            RenderedModule(package="lamp", name="__init__", content=""),
            RenderedModule(package="lamp.attributes", name="Attributes", content="class Attributes:\n    pass\n"),
        ]
        written = AtomicWriter().write_all(tmp_path, modules)

        assert written == [tmp_path / "lamp" / "__init__.py", tmp_path / "lamp" / "attributes" / "Attributes.py"]
        assert (tmp_path / "lamp" / "attributes" / "Attributes.py").read_text(encoding="utf-8") == "class Attributes:\n    pass\n"
        assert list(tmp_path.rglob("*.tmp")) == []

    def test_invalid_module_writes_nothing(self, tmp_path):
        modules = [
            RenderedModule(package="lamp", name="Good", content="x = 1\n"),
            RenderedModule(package="lamp", name="Bad", content="class Bad(:\n"),
        ]
        with pytest.raises(CodeValidationError, match="Bad.py"):
            AtomicWriter().write_all(tmp_path, modules)
        assert list(tmp_path.iterdir()) == []

    def test_overwrite(self, tmp_path):
        writer = AtomicWriter()
        path = tmp_path / "lamp" / "Lamp.py"
        writer.write(path, "x = 1\n")
        writer.write(path, "x = 2\n")
        assert path.read_text(encoding="utf-8") == "x = 2\n"
        assert [p.name for p in path.parent.iterdir()] == ["Lamp.py"]

    def test_custom_validator(self, tmp_path):
        seen = []
        writer = AtomicWriter(validate_python=lambda content, path: seen.append(path))
        writer.write_all(tmp_path, [RenderedModule(package="lamp", name="Lamp", content="not python")])
        assert seen == ["lamp/Lamp.py"]


if __name__ == "__main__":
    pytest.main([__file__])
