import logging

import pygame

logger = logging.getLogger(__name__)

# The number of keys on the Chip 8 hex keypad
NUM_KEYS = 0x10

# Sets which keys on the keyboard map to the Chip 8 keys
KEY_MAPPINGS = {
    0x0: pygame.K_KP0,
    0x1: pygame.K_KP1,
    0x2: pygame.K_KP2,
    0x3: pygame.K_KP3,
    0x4: pygame.K_KP4,
    0x5: pygame.K_KP5,
    0x6: pygame.K_KP6,
    0x7: pygame.K_KP7,
    0x8: pygame.K_KP8,
    0x9: pygame.K_KP9,
    0xA: pygame.K_a,
    0xB: pygame.K_b,
    0xC: pygame.K_c,
    0xD: pygame.K_d,
    0xE: pygame.K_e,
    0xF: pygame.K_f,
}


class Keypad(object):
    """
    Holds the pressed state of the 16 Chip 8 keys. The CPU only ever reads
    from it; whoever owns the event loop writes key changes into it, either
    directly with set_key or by passing pygame events to handle_event.
    """
    def __init__(self, key_mappings=None):
        self.key_mappings = key_mappings if key_mappings is not None else KEY_MAPPINGS
        self.key_states = [False] * NUM_KEYS
        self.reverse_mappings = {
            pygame_key: chip8_key for chip8_key, pygame_key in self.key_mappings.items()
        }

    def set_key(self, key, pressed):
        """
        Set the state of a single key.

        :param key: the Chip 8 key (0x0 - 0xF)
        :param pressed: True if the key is down
        """
        self.key_states[key & 0xF] = bool(pressed)

    def is_pressed(self, key):
        """
        :param key: the Chip 8 key to check, only the low nibble is used
        :return: True if the key is currently down
        """
        return self.key_states[key & 0xF]

    def first_pressed(self):
        """
        :return: the lowest numbered key that is down, or None
        """
        for key, pressed in enumerate(self.key_states):
            if pressed:
                return key
        return None

    def release_all(self):
        self.key_states = [False] * NUM_KEYS

    def handle_event(self, event):
        """
        Update the key states from a pygame KEYDOWN or KEYUP event. Events
        for keys that are not mapped are ignored.

        :param event: the pygame event
        :return: True if the event changed a Chip 8 key
        """
        if event.type not in (pygame.KEYDOWN, pygame.KEYUP):
            return False
        chip8_key = self.reverse_mappings.get(event.key)
        if chip8_key is None:
            return False
        pressed = event.type == pygame.KEYDOWN
        logger.debug("Key %X %s", chip8_key, "pressed" if pressed else "released")
        self.set_key(chip8_key, pressed)
        return True
