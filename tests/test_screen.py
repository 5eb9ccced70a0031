"""Tests for the packed display buffer."""

import pytest

from chip8vm.screen import CHAR_OFF, CHAR_ON, Screen


@pytest.fixture
def screen():
    return Screen()


class TestBuffer:
    """Test buffer layout and pixel access."""

    def test_buffer_size(self, screen):
        assert len(screen.screen_buffer) == 64 * 32 // 8
        assert screen.screen_width_bytes == 8

    def test_width_must_be_byte_aligned(self):
        with pytest.raises(ValueError):
            Screen(screen_width=60)

    def test_msb_is_leftmost_pixel(self, screen):
        screen.screen_buffer[0] = 0x80
        assert screen.get_screen_pixel(0, 0) == 1
        assert screen.get_screen_pixel(1, 0) == 0

    def test_row_major_layout(self, screen):
        screen.screen_buffer[2 * 8 + 1] = 0x01
        assert screen.get_screen_pixel(15, 2) == 1
        assert sum(screen.get_screen_pixel(x, y) for x in range(64) for y in range(32)) == 1

    def test_out_of_range_reads_off(self, screen):
        screen.screen_buffer[:] = b'\xff' * len(screen.screen_buffer)
        assert screen.get_screen_pixel(64, 0) == 0
        assert screen.get_screen_pixel(0, 32) == 0
        assert screen.get_screen_pixel(-1, 0) == 0


class TestCompositing:
    """Test the XOR primitive used for sprite drawing."""

    def test_xor_sets_pixels_without_collision(self, screen):
        assert screen.xor_screen_byte(1, 3, 0xF0) is False
        assert [x for x in range(64) if screen.get_screen_pixel(x, 3)] == [8, 9, 10, 11]

    def test_xor_reports_cleared_pixels(self, screen):
        screen.xor_screen_byte(0, 0, 0x0F)
        assert screen.xor_screen_byte(0, 0, 0x01) is True
        assert screen.screen_buffer[0] == 0x0E

    def test_xor_masks_to_a_byte(self, screen):
        screen.xor_screen_byte(0, 0, 0x1FF)
        assert screen.screen_buffer[0] == 0xFF

    def test_clear(self, screen):
        screen.xor_screen_byte(7, 31, 0xFF)
        screen.clear_screen()
        assert not any(screen.screen_buffer)
        assert len(screen.screen_buffer) == 256


class TestRendering:
    """Test rendering without a window."""

    def test_update_without_display_is_noop(self, screen):
        screen.update_screen()
        assert screen.screen_surface is None

    def test_render_text(self):
        screen = Screen(screen_height=2, screen_width=8)
        screen.xor_screen_byte(0, 1, 0x81)
        lines = screen.render_text().split('\n')
        assert lines[0] == CHAR_OFF * 8
        assert lines[1] == CHAR_ON + CHAR_OFF * 6 + CHAR_ON
