import argparse
import logging
import sys

import pygame

from .cpu import CPU, STACK_SIZE, STATE_HALTED, PROGRAM_COUNTER_START
from .disassembler import decode, disassemble
from .exception import (MemoryFaultException, ProgramTooLargeException,
                        StackOverflowException, UnknownOpCodeException)
from .keypad import Keypad
from .screen import Screen

logger = logging.getLogger(__name__)

# A simple timer event used for the delay and sound timers
TIMER = pygame.USEREVENT + 1
# Delay timer decrement interval (in ms)
DELAY_INTERVAL = 17
# Key that closes the emulator. It must not be one of the keypad mappings.
QUIT_KEY = pygame.K_q


def trace_instruction(cpu):
    """
    Log the instruction the CPU is about to execute.
    """
    opcode = cpu.cpu_peek_next_opcode()
    try:
        text = decode(opcode)
    except UnknownOpCodeException:
        text = '???'
    logger.info("%03X  %04X  %s", cpu.cpu_get_pc(), opcode, text)


def screen_cpu_connector(args):
    """
    Runs the main emulator loop with the specified arguments.

    :param args: the parsed command-line arguments
    :return: the process exit code
    """
    project_screen = Screen(ratio=args.scale)
    project_keypad = Keypad()
    project_cpu = CPU(project_screen, project_keypad, stack_size=args.stack_size)
    try:
        project_cpu.cpu_load_rom(args.rom, args.override)
    except (IOError, ProgramTooLargeException) as error:
        logger.error("Could not load %s: %s", args.rom, error)
        return 1

    pygame.init()
    project_screen.init_display()
    pygame.time.set_timer(TIMER, DELAY_INTERVAL)
    running = True
    exit_code = 0

    while running:
        pygame.time.wait(args.op_delay)
        try:
            if args.trace:
                trace_instruction(project_cpu)
            state = project_cpu.cpu_step()
        except (MemoryFaultException, StackOverflowException) as error:
            logger.error("Execution fault: %s", error)
            logger.error("%s", project_cpu)
            logger.debug("Screen:\n%s", project_screen.render_text())
            logger.debug("Memory:\n%s", project_cpu.cpu_dump_memory())
            exit_code = 1
            break

        # Check for events
        for event in pygame.event.get():
            if event.type == TIMER:
                project_cpu.cpu_decrement_timers()
                project_screen.update_screen()
            elif event.type == pygame.QUIT:
                running = False
            elif event.type == pygame.KEYDOWN and event.key == QUIT_KEY:
                running = False
            else:
                project_keypad.handle_event(event)

        # Check to see if CPU is in exit state
        if state == STATE_HALTED:
            logger.info("Program finished")
            project_screen.update_screen()
            running = False

    pygame.quit()
    return exit_code


def print_disassembly(args):
    """
    Print a listing of the ROM instead of running it.
    """
    try:
        with open(args.rom, 'rb') as rom_file:
            data = rom_file.read()
    except IOError as error:
        logger.error("Could not load %s: %s", args.rom, error)
        return 1
    start = 0 if args.override else PROGRAM_COUNTER_START
    for address, opcode, text in disassemble(data, start):
        print('{:03X}  {:04X}  {}'.format(address, opcode, text))
    return 0


def parse_arguments(argv=None):
    parser = argparse.ArgumentParser(
        description="Starts a simple Chip 8 emulator"
                    )
    parser.add_argument(
        "rom", help="the ROM file to load on startup")
    parser.add_argument(
        "-s", help="the scale factor to apply to the display "
                   "(default is 5)", type=int, default=5, dest="scale")
    parser.add_argument(
        "-d", help="sets the CPU operation to take at least "
                   "the specified number of milliseconds to execute (default is 1)",
        type=int, default=1, dest="op_delay")
    parser.add_argument(
        "--override", help="load the ROM at address 0 over the reserved area "
                           "instead of at 0x200", action="store_true")
    parser.add_argument(
        "--stack-size", help="the number of nested subroutine calls allowed "
                             "(default is {})".format(STACK_SIZE),
        type=int, default=STACK_SIZE, dest="stack_size")
    parser.add_argument(
        "--trace", help="log every instruction before it is executed",
        action="store_true")
    parser.add_argument(
        "--disassemble", help="print a listing of the ROM and exit",
        action="store_true")
    parser.add_argument(
        "-v", "--verbose", help="enable debug logging", action="store_true")
    return parser.parse_args(argv)


def main(argv=None):
    args = parse_arguments(argv)
    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.INFO,
        format="[%(levelname)s]:  %(message)s", stream=sys.stdout)
    if args.disassemble:
        return print_disassembly(args)
    return screen_cpu_connector(args)


if __name__ == "__main__":
    sys.exit(main())
