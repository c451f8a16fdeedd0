# =============================================================================
# test_symbols.py - Label Symbol Table Tests
# =============================================================================

import pytest

from asm80.assembler.symbols import SymbolTable, normalize_label
from asm80.errors import SourceLocation, UndefinedSymbolError, UnresolvedLabelError


class TestNormalizeLabel:
    """Test the label marker handling."""

    def test_plain_name_unchanged(self):
        assert normalize_label("loop") == "loop"

    def test_single_marker_stripped(self):
        assert normalize_label(".loop") == "loop"

    def test_only_one_marker_stripped(self):
        assert normalize_label("..loop") == ".loop"


class TestSymbolTable:
    """Test defining and resolving labels."""

    def test_define_and_resolve(self):
        symbols = SymbolTable()
        symbols.define("start", 0x8200)
        assert symbols.resolve("start") == 0x8200

    def test_marker_alias_resolves_same_address(self):
        symbols = SymbolTable()
        symbols.define("L", 0x8201)
        assert symbols.resolve(".L") == symbols.resolve("L") == 0x8201

    def test_marker_on_definition(self):
        symbols = SymbolTable()
        symbols.define(".L", 0x1234)
        assert symbols.resolve("L") == 0x1234

    def test_redefinition_last_write_wins(self):
        symbols = SymbolTable()
        symbols.define("x", 0x8200)
        symbols.define("x", 0x9000)
        assert symbols.resolve("x") == 0x9000
        assert len(symbols) == 1

    def test_labels_are_case_sensitive(self):
        symbols = SymbolTable()
        symbols.define("Loop", 0x8200)
        assert "Loop" in symbols
        assert "loop" not in symbols

    def test_unresolved_label(self):
        symbols = SymbolTable()
        with pytest.raises(UnresolvedLabelError) as exc_info:
            symbols.resolve("missing")
        assert exc_info.value.symbol == "missing"
        assert "unresolved label 'missing'" in str(exc_info.value)

    def test_unresolved_label_is_undefined_symbol(self):
        with pytest.raises(UndefinedSymbolError):
            SymbolTable().resolve(".nowhere")

    def test_unresolved_label_suggests_similar(self):
        symbols = SymbolTable()
        symbols.define("loop", 0x8200)
        with pytest.raises(UnresolvedLabelError) as exc_info:
            symbols.resolve("lop")
        assert exc_info.value.similar_symbols == ["loop"]
        assert "did you mean 'loop'?" in str(exc_info.value)

    def test_unresolved_label_carries_location(self):
        location = SourceLocation("prog.asm", 4, 5)
        with pytest.raises(UnresolvedLabelError) as exc_info:
            SymbolTable().resolve("x", location=location, source_line="    jmp x")
        assert str(exc_info.value).startswith("prog.asm:4:5: error:")

    def test_as_dict_is_a_copy(self):
        symbols = SymbolTable()
        symbols.define("a", 1)
        snapshot = symbols.as_dict()
        snapshot["b"] = 2
        assert "b" not in symbols
        assert list(symbols) == ["a"]
