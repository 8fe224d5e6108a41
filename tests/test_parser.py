import pytest

from hack_assembler import (
    AddressNumeric, AddressRangeError, AddressSymbolic, AsmError,
    AsmSyntaxError, COMP_TABLE, Compute, DEST_TABLE, InvalidMnemonicError,
    JUMP_TABLE, Label, LineKind, NULL_MNEMONIC, classify, clean, parse,
    split_compute, split_lines,
)


# ---------- split_lines ----------

def test_split_lines_lf_and_crlf():
    assert list(split_lines("@1\r\nD=A\n@2")) == ["@1", "D=A", "@2"]


def test_split_lines_empty_source_yields_one_line():
    assert list(split_lines("")) == [""]


def test_split_lines_trailing_newline_yields_final_empty_line():
    assert list(split_lines("@1\n")) == ["@1", ""]


def test_split_lines_can_be_called_again():
    src = "a\nb"
    assert list(split_lines(src)) == list(split_lines(src))


# ---------- clean ----------

def test_clean_strips_comment_part():
    assert clean("D=M              // D = first number") == "D=M"


def test_clean_comment_only_line():
    assert clean("// D = first number") == ""
    assert clean("   //") == ""


def test_clean_is_idempotent():
    for line in ["  @R1 // x", "(LOOP)", "", "\t0;JMP\t"]:
        assert clean(clean(line)) == clean(line)


# ---------- tables ----------

def test_tables_are_read_only():
    with pytest.raises(TypeError):
        DEST_TABLE["X"] = "000"
    with pytest.raises(TypeError):
        COMP_TABLE["X"] = "0000000"


def test_null_mnemonic_maps_to_zero_bits():
    assert DEST_TABLE[NULL_MNEMONIC] == "000"
    assert JUMP_TABLE[NULL_MNEMONIC] == "000"
    assert len(COMP_TABLE) == 28


# ---------- classify ----------

@pytest.mark.parametrize("line,kind", [
    ("(LOOP)", LineKind.LABEL),
    ("@123", LineKind.ADDRESS_NUMERIC),
    ("@R1", LineKind.ADDRESS_SYMBOLIC),
    ("@ball.new$ret", LineKind.ADDRESS_SYMBOLIC),
    ("@-1", LineKind.ADDRESS_SYMBOLIC),
    ("M=D", LineKind.COMPUTE),
    ("0;JMP", LineKind.COMPUTE),
])
def test_classify_kinds(line, kind):
    result = classify(line)
    assert result.ok
    assert result.kind is kind


def test_classify_unknown_line_reports_comp():
    result = classify("foo")
    assert not result.ok
    assert result.problem.part == "comp"
    assert result.problem.value == "foo"


def test_classify_address_out_of_range():
    result = classify("@32768")
    assert result.problem.kind == "range"
    assert classify("@32767").ok


@pytest.mark.parametrize("line", ["@", "@12abc", "@007x", "(LOOP", "()"])
def test_classify_malformed_is_syntax_problem(line):
    assert classify(line).problem.kind == "syntax"


# ---------- split_compute ----------

@pytest.mark.parametrize("line,parts", [
    ("D+M", (None, "D+M", None)),
    ("D", (None, "D", None)),
    ("D=M", ("D", "M", None)),
    ("0;JMP", (None, "0", "JMP")),
    ("AMD=D|M;JNE", ("AMD", "D|M", "JNE")),
    ("C=A;J", ("C", "A", "J")),
])
def test_split_compute(line, parts):
    assert split_compute(line) == parts


# ---------- parse ----------

def test_parse_each_form():
    assert parse("(END)") == Label("END")
    assert parse("@17 // seventeen") == AddressNumeric(17)
    assert parse("  @sum") == AddressSymbolic("sum")
    assert parse("D=D-A;JGE") == Compute("D", "D-A", "JGE")
    assert parse("0;JMP") == Compute(None, "0", "JMP")


def test_parse_blank_and_comment_lines_give_nothing():
    assert parse("") is None
    assert parse("   ") is None
    assert parse("// only a comment") is None


def test_parse_reports_dest_first():
    with pytest.raises(InvalidMnemonicError) as exc:
        parse("C=A;J", 4)
    assert exc.value.part == "dest"
    assert exc.value.value == "C"
    assert exc.value.line_no == 4
    assert str(exc.value).startswith("[line 4] ")


@pytest.mark.parametrize("line,part,value", [
    ("D=X", "comp", "X"),
    ("D;JJJ", "jump", "JJJ"),
    ("=M", "dest", ""),
    ("D;", "jump", ""),
])
def test_parse_invalid_mnemonics(line, part, value):
    with pytest.raises(InvalidMnemonicError) as exc:
        parse(line, 1)
    assert (exc.value.part, exc.value.value) == (part, value)


def test_parse_out_of_range_address():
    with pytest.raises(AddressRangeError) as exc:
        parse("@40000", 9)
    assert exc.value.value == 40000
    assert exc.value.line_no == 9


def test_parse_syntax_error_is_asm_error():
    with pytest.raises(AsmSyntaxError):
        parse("@12abc", 2)
    with pytest.raises(AsmError):
        parse("@", 2)


def test_parse_symbol_starting_with_any_non_digit():
    assert parse("@-1", 1) == AddressSymbolic("-1")
    assert parse("@#x", 1) == AddressSymbolic("#x")


def test_parse_spaces_inside_compute_are_not_ignored():
    with pytest.raises(InvalidMnemonicError) as exc:
        parse("D = M", 1)
    assert (exc.value.part, exc.value.value) == ("dest", "D ")
    with pytest.raises(InvalidMnemonicError) as exc:
        parse("D=M ;JMP", 1)
    assert (exc.value.part, exc.value.value) == ("comp", "M ")


def test_split_compute_keeps_substrings_verbatim():
    assert split_compute("AM =D; JGT") == ("AM ", "D", " JGT")


def test_parse_null_written_out():
    assert parse("null=M") == Compute("null", "M", None)
    assert parse("D;null") == Compute(None, "D", "null")
