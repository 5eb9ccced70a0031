"""
Turns Chip 8 opcodes into their assembly mnemonics. The lookup tables mirror
the ones the CPU dispatches on, but unlike the CPU an opcode that is not in
the tables is an error here, since a disassembly that silently skips words
is misleading.

Operands are formatted as follows:

    Vx    register, hex nibble          (V0 - VF)
    kk    byte, two hex digits          (00 - FF)
    nnn   address, three hex digits     (000 - FFF)
    n     sprite height, one hex digit  (0 - F)
"""
from .exception import UnknownOpCodeException
from .instruction import parse_opcode


def _reg(index):
    return 'V{:X}'.format(index)


def _byte(value):
    return '{:02X}'.format(value)


def _addr(value):
    return '{:03X}'.format(value)


# Top nibble -> formatter. Families 0x0, 0x8, 0xE and 0xF are resolved
# through their own tables below.
OPERATION_FORMATS = {
    0x1: lambda i: 'JP ' + _addr(i.nnn),
    0x2: lambda i: 'CALL ' + _addr(i.nnn),
    0x3: lambda i: 'SE {}, {}'.format(_reg(i.x), _byte(i.kk)),
    0x4: lambda i: 'SNE {}, {}'.format(_reg(i.x), _byte(i.kk)),
    0x6: lambda i: 'LD {}, {}'.format(_reg(i.x), _byte(i.kk)),
    0x7: lambda i: 'ADD {}, {}'.format(_reg(i.x), _byte(i.kk)),
    0xA: lambda i: 'LD I, ' + _addr(i.nnn),
    0xB: lambda i: 'JP V0, ' + _addr(i.nnn),
    0xC: lambda i: 'RND {}, {}'.format(_reg(i.x), _byte(i.kk)),
    0xD: lambda i: 'DRW {}, {}, {:X}'.format(_reg(i.x), _reg(i.y), i.n),
}

# 5xy0 and 9xy0 only exist with a zero low nibble
REGISTER_COMPARE_FORMATS = {
    0x5: 'SE',
    0x9: 'SNE',
}

SYSTEM_FORMATS = {
    0x00E0: 'CLS',
    0x00EE: 'RET',
}

LOGICAL_FORMATS = {
    0x0: 'LD',
    0x1: 'OR',
    0x2: 'AND',
    0x3: 'XOR',
    0x4: 'ADD',
    0x5: 'SUB',
    0x6: 'SHR',
    0x7: 'SUBN',
    0xE: 'SHL',
}

KEYBOARD_FORMATS = {
    0x9E: 'SKP {}',
    0xA1: 'SKNP {}',
}

MISC_FORMATS = {
    0x07: 'LD {}, DT',
    0x0A: 'LD {}, K',
    0x15: 'LD DT, {}',
    0x18: 'LD ST, {}',
    0x1E: 'ADD I, {}',
    0x29: 'LD F, {}',
    0x33: 'LD B, {}',
    0x55: 'LD [I], {}',
    0x65: 'LD {}, [I]',
}


def decode(opcode):
    """
    Return the mnemonic for a single opcode, e.g. decode(0x6A07) gives
    'LD VA, 07'.

    :param opcode: the 16-bit instruction word
    :return: the formatted instruction
    :raises UnknownOpCodeException: if the opcode is not a Chip 8 instruction
    """
    instruction = parse_opcode(opcode)
    family = instruction.family

    if family in OPERATION_FORMATS:
        return OPERATION_FORMATS[family](instruction)

    if family == 0x0 and instruction.opcode in SYSTEM_FORMATS:
        return SYSTEM_FORMATS[instruction.opcode]

    if family in REGISTER_COMPARE_FORMATS and instruction.n == 0:
        return '{} {}, {}'.format(
            REGISTER_COMPARE_FORMATS[family], _reg(instruction.x), _reg(instruction.y))

    if family == 0x8 and instruction.n in LOGICAL_FORMATS:
        return '{} {}, {}'.format(
            LOGICAL_FORMATS[instruction.n], _reg(instruction.x), _reg(instruction.y))

    if family == 0xE and instruction.kk in KEYBOARD_FORMATS:
        return KEYBOARD_FORMATS[instruction.kk].format(_reg(instruction.x))

    if family == 0xF and instruction.kk in MISC_FORMATS:
        return MISC_FORMATS[instruction.kk].format(_reg(instruction.x))

    raise UnknownOpCodeException(instruction.opcode)


def disassemble(data, start=0x200):
    """
    Disassemble a program image two bytes at a time. Words that are not
    instructions (usually sprite data) are listed as DW so a single bad word
    does not abort the listing, and a trailing odd byte is listed as DB.

    :param data: the program bytes
    :param start: the address the first byte is loaded at
    :return: a list of (address, opcode, text) tuples
    """
    listing = []
    for offset in range(0, len(data) - 1, 2):
        opcode = (data[offset] << 8) | data[offset + 1]
        try:
            text = decode(opcode)
        except UnknownOpCodeException:
            text = 'DW {:04X}'.format(opcode)
        listing.append((start + offset, opcode, text))
    if len(data) % 2:
        listing.append((start + len(data) - 1, data[-1], 'DB {:02X}'.format(data[-1])))
    return listing
