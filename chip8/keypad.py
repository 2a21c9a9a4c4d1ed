from chip8.constants import KEYS_COUNT


class Keypad:
    """state of the 16 hexadecimal keys, mutated by the host and read by the cpu"""

    def __init__(self, size=KEYS_COUNT):
        self.keys = [False] * size

    def __repr__(self):
        return f"Keypad(held={[hex(k) for k in self.held()]})"

    def _check(self, key):
        if not 0 <= key < len(self.keys):
            raise IndexError(f"CHIP-8 keys range from 0x0 to 0x{len(self.keys)-1:x}, got {key}")

    def pressed(self, key):
        self._check(key)
        return self.keys[key]

    def press(self, key):
        self._check(key)
        self.keys[key] = True

    def release(self, key):
        self._check(key)
        self.keys[key] = False

    def release_all(self):
        self.keys = [False] * len(self.keys)

    def untouched(self):
        return not any(self.keys)

    def held(self):
        """indices of the keys currently held down, lowest first"""
        return [k for k, down in enumerate(self.keys) if down]
