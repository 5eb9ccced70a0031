"""
A Chip 8 virtual machine: instruction interpreter, packed display buffer and
disassembler, with a pygame front end in chip8vm.main.
"""
from .cpu import CPU, STATE_HALTED, STATE_RUNNING
from .disassembler import decode, disassemble
from .keypad import Keypad
from .screen import Screen

__version__ = "0.1.0"
