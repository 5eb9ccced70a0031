"""
Splits a raw 16-bit opcode into the fields the Chip 8 instruction set uses.
Both the CPU and the disassembler work from the resulting Instruction record
so that the masking and shifting lives in one place.

   Bits:  15-12     11-8      7-4       3-0
          family     x         y         n
                               kk (7-0)
                     nnn (11-0)
"""
from collections import namedtuple

# Masks applied to the operand to pull out its fields
FAMILY_MASK = 0xF000
X_MASK = 0x0F00
Y_MASK = 0x00F0
NIBBLE_MASK = 0x000F
BYTE_MASK = 0x00FF
ADDRESS_MASK = 0x0FFF
OPCODE_MASK = 0xFFFF

Instruction = namedtuple('Instruction', ['opcode', 'family', 'x', 'y', 'n', 'kk', 'nnn'])


def parse_opcode(opcode):
    """
    Extract every operand field of the opcode once. Fields that a given
    instruction does not use are still filled in; the handlers simply
    ignore them.

    :param opcode: the 16-bit instruction word
    :return: an Instruction record
    """
    opcode &= OPCODE_MASK
    return Instruction(
        opcode=opcode,
        family=(opcode & FAMILY_MASK) >> 12,
        x=(opcode & X_MASK) >> 8,
        y=(opcode & Y_MASK) >> 4,
        n=opcode & NIBBLE_MASK,
        kk=opcode & BYTE_MASK,
        nnn=opcode & ADDRESS_MASK,
    )
