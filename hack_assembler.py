# hack_assembler.py
# Two-pass assembler for the 16-bit Hack computer (Nand2Tetris chapter 6)
# Usage:
#   hack-asm input.asm              -> writes input.hack next to input
#   hack-asm input.asm -o out.hack  -> writes to explicit output path
#
# Pipeline:
# - split_lines -> clean -> classify -> parse   (lexing / parsing)
# - first_pass: labels go into the symbol table, real instructions are kept
# - generate:   variables are allocated from RAM[16], one 16-bit word per line

import os
import re
import sys
from dataclasses import dataclass
from enum import Enum, auto
from types import MappingProxyType
from typing import Dict, Iterator, List, Mapping, Optional, Tuple, Union

# -----------------------------
# Code tables
# -----------------------------
# "no dest" / "no jump" key; "null" may also be written out in source
NULL_MNEMONIC = None

DEST_TABLE: Mapping[Optional[str], str] = MappingProxyType({
    NULL_MNEMONIC: "000",
    "null": "000",
    "M":    "001",
    "D":    "010",
    "MD":   "011",
    "A":    "100",
    "AM":   "101",
    "AD":   "110",
    "AMD":  "111",
})

JUMP_TABLE: Mapping[Optional[str], str] = MappingProxyType({
    NULL_MNEMONIC: "000",
    "null": "000",
    "JGT":  "001",
    "JEQ":  "010",
    "JGE":  "011",
    "JLT":  "100",
    "JNE":  "101",
    "JLE":  "110",
    "JMP":  "111",
})

COMP_TABLE: Mapping[str, str] = MappingProxyType({
    # a=0
    "0":   "0101010",
    "1":   "0111111",
    "-1":  "0111010",
    "D":   "0001100",
    "A":   "0110000",
    "!D":  "0001101",
    "!A":  "0110001",
    "-D":  "0001111",
    "-A":  "0110011",
    "D+1": "0011111",
    "A+1": "0110111",
    "D-1": "0001110",
    "A-1": "0110010",
    "D+A": "0000010",
    "D-A": "0010011",
    "A-D": "0000111",
    "D&A": "0000000",
    "D|A": "0010101",
    # a=1 (A replaced by M)
    "M":   "1110000",
    "!M":  "1110001",
    "-M":  "1110011",
    "M+1": "1110111",
    "M-1": "1110010",
    "D+M": "1000010",
    "D-M": "1010011",
    "M-D": "1000111",
    "D&M": "1000000",
    "D|M": "1010101",
})

PREDEFINED: Mapping[str, int] = MappingProxyType({
    "SP": 0, "LCL": 1, "ARG": 2, "THIS": 3, "THAT": 4,
    **{f"R{i}": i for i in range(16)},
    "SCREEN": 16384, "KBD": 24576,
})

MAX_ADDRESS = 32767   # largest 15-bit A-instruction constant
VARIABLE_BASE = 16    # first RAM slot handed out to variables

# -----------------------------
# Errors
# -----------------------------
class AsmError(Exception):
    """Base class for everything wrong with the assembly source."""

    def __init__(self, message: str, line_no: Optional[int] = None) -> None:
        super().__init__(message)
        self.message = message
        self.line_no = line_no

    def __str__(self) -> str:
        if self.line_no is None:
            return self.message
        return f"[line {self.line_no}] {self.message}"


class AsmSyntaxError(AsmError):
    pass


class InvalidMnemonicError(AsmError):
    def __init__(self, part: str, value: Optional[str], line: str,
                 line_no: Optional[int] = None) -> None:
        super().__init__(f"Invalid {part} field: '{value}' in: {line}", line_no)
        self.part = part
        self.value = value


class AddressRangeError(AsmError):
    def __init__(self, value: int, line_no: Optional[int] = None) -> None:
        super().__init__(
            f"Constant out of range for 15-bit A-instruction: {value} (max {MAX_ADDRESS})",
            line_no)
        self.value = value

# -----------------------------
# Instructions
# -----------------------------
@dataclass(frozen=True)
class Label:
    name: str


@dataclass(frozen=True)
class AddressNumeric:
    value: int


@dataclass(frozen=True)
class AddressSymbolic:
    name: str


@dataclass(frozen=True)
class Compute:
    dest: Optional[str]
    comp: str
    jump: Optional[str]


Instruction = Union[Label, AddressNumeric, AddressSymbolic, Compute]

# -----------------------------
# Lexing
# -----------------------------
def split_lines(text: str) -> Iterator[str]:
    """
    Yield the physical lines of text, one at a time.
    Both "\\n" and "\\r\\n" end a line; the last line is always yielded,
    so "" gives [""] and "a\\n" gives ["a", ""].
    """
    start = 0
    while True:
        end = text.find("\n", start)
        if end == -1:
            yield text[start:]
            return
        line = text[start:end]
        if line.endswith("\r"):
            line = line[:-1]
        yield line
        start = end + 1


def clean(line: str) -> str:
    # Remove inline comments and surrounding whitespace
    if "//" in line:
        line = line.split("//", 1)[0]
    return line.strip()

# -----------------------------
# Classification / validation
# -----------------------------
LABEL_RE = re.compile(r"\(([^()]+)\)")
ADDRESS_NUMBER_RE = re.compile(r"@([0-9]+)")
ADDRESS_SYMBOL_RE = re.compile(r"@([^0-9][\w.$:]*)")


class LineKind(Enum):
    LABEL = auto()
    ADDRESS_NUMERIC = auto()
    ADDRESS_SYMBOLIC = auto()
    COMPUTE = auto()


@dataclass(frozen=True)
class Problem:
    """What is wrong with a line, before we know where the line is."""
    kind: str                      # "syntax" | "mnemonic" | "range"
    line: str
    part: Optional[str] = None     # dest / comp / jump for "mnemonic"
    value: Union[str, int, None] = None

    def to_error(self, line_no: Optional[int] = None) -> AsmError:
        if self.kind == "mnemonic":
            return InvalidMnemonicError(self.part, self.value, self.line, line_no)
        if self.kind == "range":
            return AddressRangeError(self.value, line_no)
        return AsmSyntaxError(f"Unrecognised instruction: {self.line}", line_no)


@dataclass(frozen=True)
class Classification:
    kind: Optional[LineKind]
    problem: Optional[Problem] = None

    @property
    def ok(self) -> bool:
        return self.problem is None


def split_compute(line: str) -> Tuple[Optional[str], str, Optional[str]]:
    """
    Returns (dest, comp, jump)
    line could be: dest=comp;jump | comp;jump | dest=comp | comp
    The first '=' and the first ';' decide the split, valid or not.
    """
    dest, rest = NULL_MNEMONIC, line
    if "=" in line:
        dest, rest = line.split("=", 1)
    comp, jump = rest, NULL_MNEMONIC
    if ";" in rest:
        comp, jump = rest.split(";", 1)
    return dest, comp, jump


def check_compute(line: str) -> Optional[Problem]:
    dest, comp, jump = split_compute(line)
    # dest, comp, jump: the first bad part is reported
    for part, value, table in (("dest", dest, DEST_TABLE),
                               ("comp", comp, COMP_TABLE),
                               ("jump", jump, JUMP_TABLE)):
        if value not in table:
            return Problem("mnemonic", line, part, value)
    return None


def classify(line: str) -> Classification:
    """
    Decide which form a cleaned line has, validating it on the way.
    Never raises: a bad line comes back with `problem` set.
    """
    if LABEL_RE.fullmatch(line):
        return Classification(LineKind.LABEL)

    m = ADDRESS_NUMBER_RE.fullmatch(line)
    if m:
        value = int(m.group(1))
        if value > MAX_ADDRESS:
            return Classification(LineKind.ADDRESS_NUMERIC,
                                  Problem("range", line, value=value))
        return Classification(LineKind.ADDRESS_NUMERIC)

    if ADDRESS_SYMBOL_RE.fullmatch(line):
        return Classification(LineKind.ADDRESS_SYMBOLIC)

    if line.startswith(("@", "(")):
        return Classification(None, Problem("syntax", line))

    return Classification(LineKind.COMPUTE, check_compute(line))

# -----------------------------
# Parsing
# -----------------------------
def parse_classified(line: str, kind: LineKind) -> Instruction:
    if kind is LineKind.LABEL:
        # (LOOP) -> LOOP
        return Label(line[1:-1])
    if kind is LineKind.ADDRESS_NUMERIC:
        return AddressNumeric(int(line[1:]))
    if kind is LineKind.ADDRESS_SYMBOLIC:
        return AddressSymbolic(line[1:])
    dest, comp, jump = split_compute(line)
    return Compute(dest, comp, jump)


def parse(line: str, line_no: Optional[int] = None) -> Optional[Instruction]:
    """
    Parse one raw source line.
    Returns None for blank and comment-only lines; raises AsmError
    (tagged with line_no) for anything invalid.
    """
    text = clean(line)
    if not text:
        return None
    result = classify(text)
    if not result.ok:
        raise result.problem.to_error(line_no)
    return parse_classified(text, result.kind)

# -----------------------------
# Symbol table
# -----------------------------
class SymbolTable:
    """Symbol -> address for one translation, seeded with PREDEFINED."""

    def __init__(self) -> None:
        self._symbols: Dict[str, int] = dict(PREDEFINED)
        self.next_variable = VARIABLE_BASE

    def __contains__(self, name: str) -> bool:
        return name in self._symbols

    def __getitem__(self, name: str) -> int:
        return self._symbols[name]

    def __len__(self) -> int:
        return len(self._symbols)

    def get(self, name: str, default: Optional[int] = None) -> Optional[int]:
        return self._symbols.get(name, default)

    def add(self, name: str, address: int) -> None:
        self._symbols[name] = address

    def define_label(self, name: str, address: int) -> None:
        # A label defined twice keeps the later address
        self.add(name, address)

    def resolve(self, name: str) -> int:
        """Address of name, allocating the next variable slot on first use."""
        address = self.get(name)
        if address is None:
            address = self.next_variable
            self.add(name, address)
            self.next_variable += 1
        return address

# -----------------------------
# Pass 1: labels + instruction list
# -----------------------------
def first_pass(source: str, symbols: SymbolTable) -> List[Instruction]:
    instructions: List[Instruction] = []
    for line_no, raw in enumerate(split_lines(source), 1):
        inst = parse(raw, line_no)
        if inst is None:
            continue
        if isinstance(inst, Label):
            # Only real instructions consume ROM addresses
            symbols.define_label(inst.name, len(instructions))
        else:
            instructions.append(inst)
    return instructions

# -----------------------------
# Pass 2: machine code
# -----------------------------
def encode_address(address: int) -> str:
    return "0" + f"{address:015b}"


def encode_compute(inst: Compute) -> str:
    return "111" + COMP_TABLE[inst.comp] + DEST_TABLE[inst.dest] + JUMP_TABLE[inst.jump]


def encode(inst: Instruction, symbols: SymbolTable) -> str:
    if isinstance(inst, AddressNumeric):
        return encode_address(inst.value)
    if isinstance(inst, AddressSymbolic):
        return encode_address(symbols.resolve(inst.name))
    if isinstance(inst, Compute):
        return encode_compute(inst)
    raise TypeError(f"Cannot encode instruction: {inst!r}")


def generate(instructions: List[Instruction], symbols: SymbolTable) -> str:
    return "\n".join(encode(inst, symbols) for inst in instructions)

# -----------------------------
# Driver
# -----------------------------
def assemble(asm_text: str) -> str:
    symbols = SymbolTable()
    # every label must be known before the first variable is allocated
    instructions = first_pass(asm_text, symbols)
    return generate(instructions, symbols)


def output_path_for(in_path: str) -> str:
    stem, _ = os.path.splitext(in_path)
    return stem + ".hack"


def main(argv: List[str]) -> None:
    if len(argv) < 2:
        print("Usage: hack-asm <input.asm> [-o output.hack]")
        sys.exit(1)
    in_path = argv[1]
    if not os.path.exists(in_path):
        print(f"Input not found: {in_path}")
        sys.exit(1)

    if "-o" in argv:
        i = argv.index("-o")
        if i + 1 >= len(argv):
            print("Error: -o requires an output path")
            sys.exit(1)
        out_path = argv[i + 1]
    else:
        out_path = output_path_for(in_path)

    try:
        with open(in_path, "r", encoding="utf-8") as f:
            asm_text = f.read()
        machine = assemble(asm_text)
        count = machine.count("\n") + 1 if machine else 0
        os.makedirs(os.path.dirname(out_path) or ".", exist_ok=True)
        with open(out_path, "w", encoding="utf-8") as f:
            if machine:
                f.write(machine + "\n")
        print(f"OK: wrote {out_path} ({count} instructions)")
    except AsmError as e:
        print(f"Assembly error: {e}")
        sys.exit(2)
    except (OSError, UnicodeDecodeError) as e:
        print(f"Unexpected error: {e}")
        sys.exit(3)


def run() -> None:
    main(sys.argv)


if __name__ == "__main__":
    run()
