from pygame import display, HWSURFACE, DOUBLEBUF, Color, draw

SCREEN_NAME = 'CHIP8 Emulator'
# The height and width of the screen in pixels. Note this may be augmented by
# the scaling ratio set by the initializer when the display is drawn.
DEFAULT_HEIGHT = 32
DEFAULT_WIDTH = 64

# The number of pixels packed into each byte of the display buffer
PIXELS_PER_BYTE = 8

# The depth of the screen is the number of bits used to represent the color
# of a pixel.
SCREEN_DEPTH = 8

# The colors of the pixels to draw. The Chip 8 supports two colors: 0 (off)
# and 1 (on). The format of the colors is in RGBA format.
PIXEL_COLORS = {
    0: Color(0, 0, 0, 255),
    1: Color(250, 250, 250, 255)
}

# Characters used when rendering the buffer as text
CHAR_ON = u'█'
CHAR_OFF = ' '


class Screen(object):
    """
    A class to emulate a Chip 8 Screen. The original Chip 8 screen was 64 x 32
    with 2 colors: 0 (off) and 1 (on).

    Pixels are held in a packed buffer, one bit per pixel and 8 pixels per
    byte, row-major. The most significant bit of a byte is the leftmost
    pixel. The buffer is the source of truth; the pygame surface is only
    created when init_display is called and is redrawn from the buffer by
    update_screen.
    """
    def __init__(self, ratio=5, screen_height=DEFAULT_HEIGHT, screen_width=DEFAULT_WIDTH):
        """
        Initializes the main screen. The scale factor is used to modify
        the size of the rendered window, since the original resolution of
        the Chip 8 was 64 x 32, which is quite small.

        :param ratio: the scaling factor to apply to the window
        :param screen_height: the height of the screen in pixels
        :param screen_width: the width of the screen in pixels, a multiple of 8
        """
        if screen_width % PIXELS_PER_BYTE:
            raise ValueError("Screen width must be a multiple of {}".format(PIXELS_PER_BYTE))
        self.screen_height = screen_height
        self.screen_width = screen_width
        self.screen_width_bytes = screen_width // PIXELS_PER_BYTE
        self.scaling_ratio = ratio
        self.screen_surface = None
        self.screen_buffer = bytearray(self.screen_width_bytes * self.screen_height)

    def init_display(self):
        """
        Attempts to initialize a window with the specified height and width.
        The window will by default be of depth SCREEN_DEPTH, and will be
        double-buffered in hardware (if possible).
        """
        display.init()
        self.screen_surface = display.set_mode(
            ((self.screen_width * self.scaling_ratio),
             (self.screen_height * self.scaling_ratio)),
            HWSURFACE | DOUBLEBUF,
            SCREEN_DEPTH)
        display.set_caption(SCREEN_NAME)
        self.screen_surface.fill(PIXEL_COLORS[0])
        display.flip()

    def get_screen_pixel(self, x_axis_position, y_axis_position):
        """
        Returns whether the pixel is on (1) or off (0) at the specified
        location. Positions outside of the screen read as off.

        :param x_axis_position: the x coordinate to check
        :param y_axis_position: the y coordinate to check
        :return: the color of the specified pixel (0 or 1)
        """
        if not (0 <= x_axis_position < self.screen_width and
                0 <= y_axis_position < self.screen_height):
            return 0
        element = x_axis_position // PIXELS_PER_BYTE + y_axis_position * self.screen_width_bytes
        mask = 0x80 >> (x_axis_position % PIXELS_PER_BYTE)
        return 1 if self.screen_buffer[element] & mask else 0

    def xor_screen_byte(self, byte_column, y_axis_position, bits):
        """
        XOR eight pixels into the buffer at the given byte column of a row.

        :param byte_column: the column in bytes (x // 8)
        :param y_axis_position: the row
        :param bits: the pixels to flip, MSB leftmost
        :return: True if a pixel that was on has been turned off
        """
        element = byte_column + y_axis_position * self.screen_width_bytes
        before = self.screen_buffer[element]
        after = before ^ (bits & 0xFF)
        self.screen_buffer[element] = after
        return before & after != before

    def clear_screen(self):
        """
        Turns off all the pixels on the screen (writes color 0 to all pixels).
        """
        self.screen_buffer[:] = bytes(len(self.screen_buffer))

    def update_screen(self):
        """
        Redraws the pygame surface from the buffer and swaps the back buffer
        and screen buffer. Does nothing when no display has been initialized.
        """
        if self.screen_surface is None:
            return
        self.screen_surface.fill(PIXEL_COLORS[0])
        for y_axis_position in range(self.screen_height):
            for x_axis_position in range(self.screen_width):
                if self.get_screen_pixel(x_axis_position, y_axis_position):
                    draw.rect(self.screen_surface,
                              PIXEL_COLORS[1],
                              (x_axis_position * self.scaling_ratio,
                               y_axis_position * self.scaling_ratio,
                               self.scaling_ratio, self.scaling_ratio))
        display.flip()

    def render_text(self):
        """
        Render the buffer as lines of block characters, one line per row.

        :return: the rendered screen as a string
        """
        lines = []
        for y_axis_position in range(self.screen_height):
            lines.append(''.join(
                CHAR_ON if self.get_screen_pixel(x_axis_position, y_axis_position) else CHAR_OFF
                for x_axis_position in range(self.screen_width)))
        return '\n'.join(lines)
