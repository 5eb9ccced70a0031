import logging
from collections import deque
from random import randint

from .exception import MemoryFaultException, ProgramTooLargeException, StackOverflowException
from .instruction import parse_opcode
from .keypad import Keypad
from .screen import Screen

logger = logging.getLogger(__name__)

# The total amount of memory to allocate for the emulator
MAX_MEMORY = 4096

# Where the program counter should originally point, and where programs are
# loaded unless they are allowed to override the reserved area
PROGRAM_COUNTER_START = 0x200

# The last address an instruction can be fetched from (two bytes are read)
LAST_INSTRUCTION_ADDRESS = MAX_MEMORY - 2

# The classic Chip 8 allows 16 levels of nested subroutines
STACK_SIZE = 16

# The number of executed instructions remembered for tracing
HISTORY_SIZE = 256

# The total number of registers in the Chip 8 CPU
NUM_REGISTERS = 0x10

# Where the hexadecimal font sprites live in the reserved area, and how many
# bytes each one takes up
FONT_ADDRESS = 0x000
FONT_SPRITE_SIZE = 5

FONT_SPRITES = [
    0xF0, 0x90, 0x90, 0x90, 0xF0,  # 0
    0x20, 0x60, 0x20, 0x20, 0x70,  # 1
    0xF0, 0x10, 0xF0, 0x80, 0xF0,  # 2
    0xF0, 0x10, 0xF0, 0x10, 0xF0,  # 3
    0x90, 0x90, 0xF0, 0x10, 0x10,  # 4
    0xF0, 0x80, 0xF0, 0x10, 0xF0,  # 5
    0xF0, 0x80, 0xF0, 0x90, 0xF0,  # 6
    0xF0, 0x10, 0x20, 0x40, 0x40,  # 7
    0xF0, 0x90, 0xF0, 0x90, 0xF0,  # 8
    0xF0, 0x90, 0xF0, 0x10, 0xF0,  # 9
    0xF0, 0x90, 0xF0, 0x90, 0x90,  # A
    0xE0, 0x90, 0xE0, 0x90, 0xE0,  # B
    0xF0, 0x80, 0x80, 0x80, 0xF0,  # C
    0xE0, 0x90, 0x90, 0x90, 0xE0,  # D
    0xF0, 0x80, 0xF0, 0x80, 0xF0,  # E
    0xF0, 0x80, 0xF0, 0x80, 0x80,  # F
]

# The states a CPU can be in after a step
STATE_RUNNING = 'running'
STATE_HALTED = 'halted'


def random_byte():
    return randint(0, 255)


# C L A S S E S ###############################################################


class CPU(object):
    """
    The Chip 8 interpreter. Machine state is 4K of memory with the hex font
    in the bottom 80 bytes, registers V0 - VF, the index register I, the
    program counter, a bounded stack of return addresses and the delay and
    sound timers. The display lives in the Screen and key states in the
    Keypad; both are passed in so tests can build a CPU without a window.

    VF doubles as the flag register: ADD, SUB, SUBN, SHR, SHL and DRW all
    overwrite it.

    Reference: http://devernay.free.fr/hacks/chip8/C8TECH10.HTM

    The CPU never paces itself. Whoever drives it calls cpu_step at the
    desired clock speed and cpu_decrement_timers at 60 Hz.
    """
    def __init__(self, screen=None, keypad=None, random_source=None,
                 stack_size=STACK_SIZE, history_size=HISTORY_SIZE):
        """
        Initialize the Chip8 CPU. All collaborators are optional so that the
        CPU can be used without a window for testing and tracing.

        :param screen: the Screen holding the display buffer
        :param keypad: the Keypad to read key states from
        :param random_source: a callable returning a random byte (0 - 255)
        :param stack_size: the number of nested calls allowed
        :param history_size: the number of executed opcodes remembered
        """
        # Both timers count down to zero at 60 Hz, driven from outside
        self.cpu_timers = {
            'delay': 0,
            'sound': 0,
        }

        # V0 - VF live in a list under 'v'
        self.cpu_registers = {
            'v': [],
            'index': 0,
            'pc': 0,
        }

        # Handlers keyed on the top nibble of the opcode
        self.cpu_operation_lookup = {
            0x0: self.cpu_clear_return,                  # 00E0 - CLS / 00EE - RET
            0x1: self.cpu_jump_to_address,               # 1nnn - JP   nnn
            0x2: self.cpu_jump_to_subroutine,            # 2nnn - CALL nnn
            0x3: self.cpu_skip_if_reg_equal_val,         # 3xkk - SE   Vx, kk
            0x4: self.cpu_skip_if_reg_not_equal_val,     # 4xkk - SNE  Vx, kk
            0x5: self.cpu_skip_if_reg_equal_reg,         # 5xy0 - SE   Vx, Vy
            0x6: self.cpu_move_value_to_reg,             # 6xkk - LD   Vx, kk
            0x7: self.cpu_add_value_to_reg,              # 7xkk - ADD  Vx, kk
            0x8: self.cpu_execute_logical_instruction,   # dispatched on n or kk
            0x9: self.cpu_skip_if_reg_not_equal_reg,     # 9xy0 - SNE  Vx, Vy
            0xA: self.cpu_load_index_reg_with_value,     # Annn - LD   I, nnn
            0xB: self.cpu_jump_to_reg_plus_value,        # Bnnn - JP   V0, nnn
            0xC: self.cpu_generate_random_number,        # Cxkk - RND  Vx, kk
            0xD: self.cpu_draw_sprite,                   # Dxyn - DRW  Vx, Vy, n
            0xE: self.cpu_keyboard_routines,             # dispatched on n or kk
            0xF: self.cpu_misc_routines,                 # dispatched on n or kk
        }

        # 8xyn, keyed on n
        self.cpu_logical_operation_lookup = {
            0x0: self.cpu_move_reg_into_reg,             # 8xy0 - LD   Vx, Vy
            0x1: self.cpu_logical_or,                    # 8xy1 - OR   Vx, Vy
            0x2: self.cpu_logical_and,                   # 8xy2 - AND  Vx, Vy
            0x3: self.cpu_exclusive_or,                  # 8xy3 - XOR  Vx, Vy
            0x4: self.cpu_add_reg_to_reg,                # 8xy4 - ADD  Vx, Vy
            0x5: self.cpu_subtract_reg_from_reg,         # 8xy5 - SUB  Vx, Vy
            0x6: self.cpu_right_shift_reg,               # 8xy6 - SHR  Vx
            0x7: self.cpu_subtract_reg_from_reg1,        # 8xy7 - SUBN Vx, Vy
            0xE: self.cpu_left_shift_reg,                # 8xyE - SHL  Vx
        }

        # Exkk, keyed on kk
        self.cpu_keyboard_routine_lookup = {
            0x9E: self.cpu_skip_if_key_pressed,          # Ex9E - SKP  Vx
            0xA1: self.cpu_skip_if_key_not_pressed,      # ExA1 - SKNP Vx
        }

        # Fxkk, keyed on kk
        self.cpu_misc_routine_lookup = {
            0x07: self.cpu_move_delay_timer_into_reg,    # Fx07 - LD   Vx, DT
            0x0A: self.cpu_wait_for_keypress,            # Fx0A - LD   Vx, K
            0x15: self.cpu_move_reg_into_delay_timer,    # Fx15 - LD   DT, Vx
            0x18: self.cpu_move_reg_into_sound_timer,    # Fx18 - LD   ST, Vx
            0x1E: self.cpu_add_reg_into_index,           # Fx1E - ADD  I, Vx
            0x29: self.cpu_load_index_with_reg_sprite,   # Fx29 - LD   F, Vx
            0x33: self.cpu_store_bcd_in_memory,          # Fx33 - LD   B, Vx
            0x55: self.cpu_store_regs_in_memory,         # Fx55 - LD   [I], Vx
            0x65: self.cpu_read_regs_from_memory,        # Fx65 - LD   Vx, [I]
        }
        self.cpu_instruction = parse_opcode(0)
        self.cpu_screen = screen if screen is not None else Screen()
        self.cpu_keypad = keypad if keypad is not None else Keypad()
        self.cpu_random_byte = random_source if random_source is not None else random_byte
        self.cpu_stack_size = stack_size
        self.cpu_history = deque(maxlen=history_size)
        self.cpu_stack = []
        self.cpu_state = STATE_RUNNING
        self.cpu_memory = bytearray(MAX_MEMORY)
        self.cpu_memory[FONT_ADDRESS:FONT_ADDRESS + len(FONT_SPRITES)] = bytes(FONT_SPRITES)
        self.cpu_reset()

    def __str__(self):
        val = 'PC: {:04X}  OP: {:04X}  I: {:04X}  SP: {:X}\n'.format(
            self.cpu_registers['pc'], self.cpu_instruction.opcode,
            self.cpu_registers['index'], len(self.cpu_stack))
        val += 'DT: {:02X}  ST: {:02X}\n'.format(
            self.cpu_timers['delay'], self.cpu_timers['sound'])
        for row in range(0, NUM_REGISTERS, 4):
            val += ' '.join(
                'V{:X}: {:02X}'.format(index, self.cpu_registers['v'][index])
                for index in range(row, row + 4)) + '\n'
        return val

    def cpu_step(self):
        """
        Fetch the instruction pointed to by the program counter, advance the
        program counter by 2 and execute the instruction.

        The CPU halts when the program counter runs past the top of memory or
        when a return is executed with nothing on the stack. Once halted,
        stepping does nothing.

        :return: STATE_RUNNING or STATE_HALTED
        """
        if self.cpu_state == STATE_HALTED:
            return self.cpu_state

        cpu_address = self.cpu_registers['pc']
        if cpu_address > LAST_INSTRUCTION_ADDRESS:
            logger.info("Program counter ran past the end of memory at %X, halting", cpu_address)
            self.cpu_state = STATE_HALTED
            return self.cpu_state

        cpu_opcode = self.cpu_peek_next_opcode()
        self.cpu_registers['pc'] += 2
        self.cpu_history.append((cpu_address, cpu_opcode))
        logger.debug("%03X: %04X", cpu_address, cpu_opcode)
        self.cpu_execute_instruction(cpu_opcode)

        if self.cpu_state == STATE_RUNNING and self.cpu_registers['pc'] > LAST_INSTRUCTION_ADDRESS:
            logger.info("Program counter ran past the end of memory, halting")
            self.cpu_state = STATE_HALTED
        return self.cpu_state

    def cpu_execute_instruction(self, cpu_operator_param):
        """
        Execute a single opcode without fetching it from memory. The program
        counter is not advanced, which makes this useful for testing.

        :param cpu_operator_param: the opcode to execute
        :return: returns the opcode executed
        """
        self.cpu_instruction = parse_opcode(cpu_operator_param)
        self.cpu_operation_lookup[self.cpu_instruction.family]()
        return self.cpu_instruction.opcode

    def cpu_peek_next_opcode(self):
        """
        :return: the opcode at the program counter, without advancing it
        """
        cpu_pc = self.cpu_registers['pc']
        if cpu_pc > LAST_INSTRUCTION_ADDRESS:
            raise MemoryFaultException(cpu_pc + 1)
        return (self.cpu_memory[cpu_pc] << 8) | self.cpu_memory[cpu_pc + 1]

    def cpu_ignore_instruction(self):
        logger.debug("Ignoring unknown op-code %04X", self.cpu_instruction.opcode)

    def cpu_execute_logical_instruction(self):
        """
        Execute the logical instruction based upon the lowest nibble of the
        current operand.
        """
        self.cpu_logical_operation_lookup.get(
            self.cpu_instruction.n, self.cpu_ignore_instruction)()

    def cpu_keyboard_routines(self):
        """
        Ex9E and ExA1, dispatched on kk.
        """
        self.cpu_keyboard_routine_lookup.get(
            self.cpu_instruction.kk, self.cpu_ignore_instruction)()

    def cpu_misc_routines(self):
        """
        Timer, key wait, index and register block routines of the F family.
        """
        self.cpu_misc_routine_lookup.get(
            self.cpu_instruction.kk, self.cpu_ignore_instruction)()

    def cpu_clear_return(self):
        """
        00E0 clears the display and 00EE pops the return address. RET on an
        empty stack halts the CPU. Other 0nnn (SYS) opcodes are no-ops.
        """
        if self.cpu_instruction.opcode == 0x00E0:
            self.cpu_screen.clear_screen()

        elif self.cpu_instruction.opcode == 0x00EE:
            if not self.cpu_stack:
                logger.info("Return from subroutine with an empty stack, halting")
                self.cpu_state = STATE_HALTED
                return
            self.cpu_registers['pc'] = self.cpu_stack.pop()

        else:
            self.cpu_ignore_instruction()

    def cpu_jump_to_address(self):
        """
        1nnn - JP nnn
        """
        self.cpu_registers['pc'] = self.cpu_instruction.nnn

    def cpu_jump_to_subroutine(self):
        """
        2nnn - CALL nnn

        Push the return address and jump to nnn.

        :raises StackOverflowException: when the stack is already full
        """
        if len(self.cpu_stack) >= self.cpu_stack_size:
            raise StackOverflowException(self.cpu_stack_size)
        self.cpu_stack.append(self.cpu_registers['pc'])
        self.cpu_registers['pc'] = self.cpu_instruction.nnn

    def cpu_skip_if_reg_equal_val(self):
        """
        3xkk - SE Vx, kk

        Skip the next instruction when Vx holds kk.
        """
        if self.cpu_registers['v'][self.cpu_instruction.x] == self.cpu_instruction.kk:
            self.cpu_registers['pc'] += 2

    def cpu_skip_if_reg_not_equal_val(self):
        """
        4xkk - SNE Vx, kk

        Skip the next instruction unless Vx holds kk.
        """
        if self.cpu_registers['v'][self.cpu_instruction.x] != self.cpu_instruction.kk:
            self.cpu_registers['pc'] += 2

    def cpu_skip_if_reg_equal_reg(self):
        """
        5xy0 - SE Vx, Vy

        Skip the next instruction when Vx and Vy match. The low nibble is
        not checked.
        """
        cpu_v = self.cpu_registers['v']
        if cpu_v[self.cpu_instruction.x] == cpu_v[self.cpu_instruction.y]:
            self.cpu_registers['pc'] += 2

    def cpu_move_value_to_reg(self):
        """
        6xkk - LD Vx, kk

        Vx = kk
        """
        self.cpu_registers['v'][self.cpu_instruction.x] = self.cpu_instruction.kk

    def cpu_add_value_to_reg(self):
        """
        7xkk - ADD Vx, kk

        Vx = Vx + kk, wrapping at 256. VF is left alone.
        """
        cpu_target = self.cpu_instruction.x
        temp = self.cpu_registers['v'][cpu_target] + self.cpu_instruction.kk
        self.cpu_registers['v'][cpu_target] = temp & 0xFF

    def cpu_move_reg_into_reg(self):
        """
        8xy0 - LD Vx, Vy

        Vx = Vy
        """
        cpu_v = self.cpu_registers['v']
        cpu_v[self.cpu_instruction.x] = cpu_v[self.cpu_instruction.y]

    def cpu_logical_or(self):
        """
        8xy1 - OR Vx, Vy
        """
        cpu_v = self.cpu_registers['v']
        cpu_v[self.cpu_instruction.x] |= cpu_v[self.cpu_instruction.y]

    def cpu_logical_and(self):
        """
        8xy2 - AND Vx, Vy
        """
        cpu_v = self.cpu_registers['v']
        cpu_v[self.cpu_instruction.x] &= cpu_v[self.cpu_instruction.y]

    def cpu_exclusive_or(self):
        """
        8xy3 - XOR Vx, Vy
        """
        cpu_v = self.cpu_registers['v']
        cpu_v[self.cpu_instruction.x] ^= cpu_v[self.cpu_instruction.y]

    def cpu_add_reg_to_reg(self):
        """
        8xy4 - ADD Vx, Vy

        Vx = Vx + Vy, wrapping at 256. VF becomes 1 when the unwrapped sum
        exceeds 255, else 0.
        """
        cpu_v = self.cpu_registers['v']
        cpu_target = self.cpu_instruction.x
        temp = cpu_v[cpu_target] + cpu_v[self.cpu_instruction.y]
        cpu_v[cpu_target] = temp & 0xFF
        cpu_v[0xF] = 1 if temp > 0xFF else 0

    def cpu_subtract_reg_from_reg(self):
        """
        8xy5 - SUB Vx, Vy

        Vx = Vx - Vy, wrapping below 0. VF becomes 1 when no borrow was
        needed (Vx >= Vy), else 0.
        """
        cpu_v = self.cpu_registers['v']
        cpu_target = self.cpu_instruction.x
        temp = cpu_v[cpu_target] - cpu_v[self.cpu_instruction.y]
        cpu_v[cpu_target] = temp & 0xFF
        cpu_v[0xF] = 1 if temp >= 0 else 0

    def cpu_right_shift_reg(self):
        """
        8xy6 - SHR Vx

        VF takes bit 0 of Vx, then Vx is halved. Vy is not used.
        """
        cpu_source = self.cpu_instruction.x
        cpu_value = self.cpu_registers['v'][cpu_source]
        self.cpu_registers['v'][0xF] = cpu_value & 0x1
        self.cpu_registers['v'][cpu_source] = cpu_value >> 1

    def cpu_subtract_reg_from_reg1(self):
        """
        8xy7 - SUBN Vx, Vy

        Vx = Vy - Vx, wrapping below 0. VF becomes 1 when no borrow was
        needed (Vy >= Vx), else 0.
        """
        cpu_v = self.cpu_registers['v']
        cpu_target = self.cpu_instruction.x
        temp = cpu_v[self.cpu_instruction.y] - cpu_v[cpu_target]
        cpu_v[cpu_target] = temp & 0xFF
        cpu_v[0xF] = 1 if temp >= 0 else 0

    def cpu_left_shift_reg(self):
        """
        8xyE - SHL Vx

        VF takes bit 7 of Vx, then Vx is doubled and truncated to a byte.
        Vy is not used.
        """
        cpu_source = self.cpu_instruction.x
        cpu_value = self.cpu_registers['v'][cpu_source]
        self.cpu_registers['v'][0xF] = (cpu_value & 0x80) >> 7
        self.cpu_registers['v'][cpu_source] = (cpu_value << 1) & 0xFF

    def cpu_skip_if_reg_not_equal_reg(self):
        """
        9xy0 - SNE Vx, Vy

        Skip the next instruction when Vx and Vy differ.
        """
        cpu_v = self.cpu_registers['v']
        if cpu_v[self.cpu_instruction.x] != cpu_v[self.cpu_instruction.y]:
            self.cpu_registers['pc'] += 2

    def cpu_load_index_reg_with_value(self):
        """
        Annn - LD I, nnn
        """
        self.cpu_registers['index'] = self.cpu_instruction.nnn

    def cpu_jump_to_reg_plus_value(self):
        """
        Bnnn - JP V0, nnn

        PC = V0 + nnn
        """
        self.cpu_registers['pc'] = self.cpu_registers['v'][0] + self.cpu_instruction.nnn

    def cpu_generate_random_number(self):
        """
        Cxkk - RND Vx, kk

        Vx = a byte from the random source, masked with kk.
        """
        cpu_value = self.cpu_random_byte() & 0xFF
        self.cpu_registers['v'][self.cpu_instruction.x] = cpu_value & self.cpu_instruction.kk

    def cpu_draw_sprite(self):
        """
        Dxyn - DRW Vx, Vy, n

        XOR an n row sprite, read from memory starting at the index register,
        onto the screen with its top left corner at (Vx, Vy). Each memory
        byte is one 8 pixel row, most significant bit on the left, so the
        bytes F0 90 F0 90 F0 draw the font glyph for '8'.

        Nothing wraps. A sprite whose x coordinate is past the right edge is
        skipped, pixels past the right edge are dropped, and rows below the
        bottom of the screen are not drawn. An x coordinate that is not a
        multiple of 8 splits each row over two bytes of the packed buffer.

        VF is cleared, then set to 1 if any lit pixel is turned off. The
        sprite rows that will be drawn are range checked before anything
        changes, so a memory fault leaves the screen and VF untouched.
        """
        cpu_v = self.cpu_registers['v']
        cpu_x_pos = cpu_v[self.cpu_instruction.x]
        cpu_y_pos = cpu_v[self.cpu_instruction.y]
        cpu_screen = self.cpu_screen
        cpu_index = self.cpu_registers['index']

        cpu_rows = max(0, min(self.cpu_instruction.n, cpu_screen.screen_height - cpu_y_pos))
        if cpu_rows:
            self.cpu_check_address(cpu_index + cpu_rows - 1)
        cpu_v[0xF] = 0

        cpu_byte_column = cpu_x_pos // 8
        cpu_bit_offset = cpu_x_pos % 8
        if cpu_byte_column >= cpu_screen.screen_width_bytes:
            return

        for cpu_y_index in range(cpu_rows):
            cpu_y_coord = cpu_y_pos + cpu_y_index
            cpu_sprite_byte = self.cpu_memory[cpu_index + cpu_y_index]
            cpu_collision = cpu_screen.xor_screen_byte(
                cpu_byte_column, cpu_y_coord, cpu_sprite_byte >> cpu_bit_offset)

            if cpu_bit_offset and cpu_byte_column < cpu_screen.screen_width_bytes - 1:
                cpu_collision |= cpu_screen.xor_screen_byte(
                    cpu_byte_column + 1, cpu_y_coord, cpu_sprite_byte << (8 - cpu_bit_offset))

            if cpu_collision:
                cpu_v[0xF] = 1

    def cpu_skip_if_key_pressed(self):
        """
        Ex9E - SKP Vx

        Skip the next instruction if the key whose value is in Vx is pressed.
        """
        if self.cpu_keypad.is_pressed(self.cpu_registers['v'][self.cpu_instruction.x]):
            self.cpu_registers['pc'] += 2

    def cpu_skip_if_key_not_pressed(self):
        """
        ExA1 - SKNP Vx

        Skip the next instruction if the key whose value is in Vx is NOT
        pressed.
        """
        if not self.cpu_keypad.is_pressed(self.cpu_registers['v'][self.cpu_instruction.x]):
            self.cpu_registers['pc'] += 2

    def cpu_move_delay_timer_into_reg(self):
        """
        Fx07 - LD Vx, DT
        """
        self.cpu_registers['v'][self.cpu_instruction.x] = self.cpu_timers['delay']

    def cpu_wait_for_keypress(self):
        """
        Fx0A - LD Vx, K

        Vx = lowest key held down. With no key down PC moves back 2, so the
        same instruction runs again on the next step and the driver keeps
        handling events in between.
        """
        cpu_key = self.cpu_keypad.first_pressed()
        if cpu_key is None:
            self.cpu_registers['pc'] -= 2
            return
        self.cpu_registers['v'][self.cpu_instruction.x] = cpu_key

    def cpu_move_reg_into_delay_timer(self):
        """
        Fx15 - LD DT, Vx
        """
        self.cpu_timers['delay'] = self.cpu_registers['v'][self.cpu_instruction.x]

    def cpu_move_reg_into_sound_timer(self):
        """
        Fx18 - LD ST, Vx
        """
        self.cpu_timers['sound'] = self.cpu_registers['v'][self.cpu_instruction.x]

    def cpu_add_reg_into_index(self):
        """
        Fx1E - ADD I, Vx

        I = (I + Vx) & 0xFFFF. I may point past memory; that only faults
        when something reads or writes through it.
        """
        cpu_index = self.cpu_registers['index'] + self.cpu_registers['v'][self.cpu_instruction.x]
        self.cpu_registers['index'] = cpu_index & 0xFFFF

    def cpu_load_index_with_reg_sprite(self):
        """
        Fx29 - LD F, Vx

        I = address of the built-in glyph for the low nibble of Vx.
        """
        cpu_digit = self.cpu_registers['v'][self.cpu_instruction.x] & 0xF
        self.cpu_registers['index'] = FONT_ADDRESS + cpu_digit * FONT_SPRITE_SIZE

    def cpu_store_bcd_in_memory(self):
        """
        Fx33 - LD B, Vx

        Write the decimal digits of Vx (0-9 each, hundreds first) to I, I+1
        and I+2. Nothing is written if I+2 is outside memory.
        """
        cpu_index = self.cpu_registers['index']
        self.cpu_check_address(cpu_index + 2)
        cpu_value = self.cpu_registers['v'][self.cpu_instruction.x]
        self.cpu_memory[cpu_index] = cpu_value // 100
        self.cpu_memory[cpu_index + 1] = (cpu_value // 10) % 10
        self.cpu_memory[cpu_index + 2] = cpu_value % 10

    def cpu_store_regs_in_memory(self):
        """
        Fx55 - LD [I], Vx

        memory[I..I+x] = V0..Vx. I is not incremented.
        """
        cpu_index = self.cpu_registers['index']
        cpu_count = self.cpu_instruction.x + 1
        self.cpu_check_address(cpu_index + cpu_count - 1)
        self.cpu_memory[cpu_index:cpu_index + cpu_count] = bytes(self.cpu_registers['v'][:cpu_count])

    def cpu_read_regs_from_memory(self):
        """
        Fx65 - LD Vx, [I]

        V0..Vx = memory[I..I+x]. I is not incremented.
        """
        cpu_index = self.cpu_registers['index']
        cpu_count = self.cpu_instruction.x + 1
        self.cpu_check_address(cpu_index + cpu_count - 1)
        for cpu_counter in range(cpu_count):
            self.cpu_registers['v'][cpu_counter] = self.cpu_memory[cpu_index + cpu_counter]

    def cpu_check_address(self, cpu_address):
        """
        :raises MemoryFaultException: if the address is outside of memory
        """
        if not 0 <= cpu_address < MAX_MEMORY:
            logger.warning("Memory fault at %X executing %04X",
                           cpu_address, self.cpu_instruction.opcode)
            raise MemoryFaultException(cpu_address)

    def cpu_reset(self):
        """
        Put registers, timers, stack and history back to their power-on
        values and clear the screen. Memory is kept.
        """
        self.cpu_registers['v'] = [0] * NUM_REGISTERS
        self.cpu_registers['pc'] = PROGRAM_COUNTER_START
        self.cpu_registers['index'] = 0
        self.cpu_timers['delay'] = 0
        self.cpu_timers['sound'] = 0
        self.cpu_stack = []
        self.cpu_history.clear()
        self.cpu_state = STATE_RUNNING
        self.cpu_screen.clear_screen()

    def cpu_load_program(self, cpu_program, override_reserved=False):
        """
        Copy a program image into memory. Normally the program is placed at
        PROGRAM_COUNTER_START, leaving the reserved area (and the font) alone.
        When override_reserved is set the image is copied from address 0,
        replacing the reserved area as well.

        :param cpu_program: the program bytes
        :param override_reserved: load at address 0 instead of 0x200
        :raises ProgramTooLargeException: if the image does not fit
        """
        cpu_offset = 0 if override_reserved else PROGRAM_COUNTER_START
        cpu_available = MAX_MEMORY - cpu_offset
        if len(cpu_program) > cpu_available:
            raise ProgramTooLargeException(len(cpu_program), cpu_available)
        self.cpu_memory[cpu_offset:cpu_offset + len(cpu_program)] = bytes(cpu_program)
        logger.info("Loaded %d bytes at %03X", len(cpu_program), cpu_offset)

    def cpu_load_rom(self, filename, override_reserved=False):
        """
        Read a ROM file and hand it to cpu_load_program.

        :param filename: path of the ROM image
        :param override_reserved: load at address 0 instead of 0x200
        """
        with open(filename, 'rb') as rom_file:
            cpu_romdata = rom_file.read()
        self.cpu_load_program(cpu_romdata, override_reserved)

    def cpu_decrement_timers(self):
        """
        Decrement both the sound and delay timer.
        """
        if self.cpu_timers['delay'] != 0:
            self.cpu_timers['delay'] -= 1

        if self.cpu_timers['sound'] != 0:
            self.cpu_timers['sound'] -= 1

    def cpu_read_pixel(self, x_pos, y_pos):
        """
        :return: True if the pixel at (x_pos, y_pos) is on
        """
        return self.cpu_screen.get_screen_pixel(x_pos, y_pos) == 1

    def cpu_get_register(self, register):
        return self.cpu_registers['v'][register]

    def cpu_get_registers(self):
        return list(self.cpu_registers['v'])

    def cpu_get_index(self):
        return self.cpu_registers['index']

    def cpu_get_pc(self):
        return self.cpu_registers['pc']

    def cpu_get_stack(self):
        return list(self.cpu_stack)

    def cpu_get_memory(self):
        return bytes(self.cpu_memory)

    def cpu_get_delay_timer(self):
        return self.cpu_timers['delay']

    def cpu_set_delay_timer(self, value):
        self.cpu_timers['delay'] = value & 0xFF

    def cpu_get_sound_timer(self):
        return self.cpu_timers['sound']

    def cpu_set_sound_timer(self, value):
        self.cpu_timers['sound'] = value & 0xFF

    def cpu_get_history(self):
        """
        :return: the most recently executed (address, opcode) pairs, oldest
                 first
        """
        return list(self.cpu_history)

    def cpu_dump_memory(self, start=0, end=MAX_MEMORY):
        """
        Format a region of memory as a hex dump, 16 bytes per line:

            0200 | 00 e0 a2 2a 60 0c 61 08 d0 1f 70 09 a2 39 d0 1f

        :param start: the first address to dump
        :param end: the address to stop at (exclusive)
        :return: the dump as a string
        """
        lines = []
        for address in range(start - start % 16, min(end, MAX_MEMORY), 16):
            row = self.cpu_memory[address:min(address + 16, end)]
            lines.append('{:04x} | {}'.format(address, ' '.join('{:02x}'.format(b) for b in row)))
        return '\n'.join(lines)
