class UnknownOpCodeException(Exception):
    """
    A class to raise unknown op code exceptions.
    """
    def __init__(self, op_code):
        Exception.__init__(self, "Unknown op-code: {:04X}".format(op_code))
        self.op_code = op_code


class ProgramTooLargeException(Exception):
    """
    Raised when a program image does not fit in the memory that remains
    after its load address.
    """
    def __init__(self, size, available):
        Exception.__init__(
            self, "Program of {} bytes exceeds the {} bytes available".format(size, available))
        self.size = size
        self.available = available


class MemoryFaultException(Exception):
    """
    Raised when an instruction addresses memory outside of the 4K address
    space.
    """
    def __init__(self, address):
        Exception.__init__(self, "Memory access out of range: {:X}".format(address))
        self.address = address


class StackOverflowException(Exception):
    """
    Raised when a subroutine call would push past the capacity of the stack.
    """
    def __init__(self, capacity):
        Exception.__init__(self, "Stack overflow: more than {} nested calls".format(capacity))
        self.capacity = capacity
