import contextlib
import io
import itertools
import unittest

from chip8.constants import C8_FONTS
from chip8.cpu import Chip8, Instruction, State
from chip8.errors import OutOfBoundsFetch, StackOverflow, StackUnderflow


def program(*opcodes):
    return b"".join(op.to_bytes(2, "big") for op in opcodes)

def make_chip(*opcodes, rng=None):
    chip = Chip8(rng=rng)
    chip.load(program(*opcodes))
    return chip

def run(chip, cycles):
    for _ in range(cycles):
        chip.step()


class TestDecoding(unittest.TestCase):
    def test_fields(self):
        ins = Instruction.from_opcode(0xD12F)
        self.assertEqual((ins.family, ins.x, ins.y, ins.n, ins.nn, ins.nnn),
                         (0xD, 0x1, 0x2, 0xF, 0x2F, 0x12F))

    def test_disassemble(self):
        chip = Chip8()
        self.assertEqual(chip.disassemble(0x00E0), "CLS")
        self.assertEqual(chip.disassemble(0x600A), "LD V0, 10")
        self.assertEqual(chip.disassemble(0x8AB4), "ADD VA, VB")
        self.assertEqual(chip.disassemble(0xA2F0), "LD I, 0x2f0")
        self.assertEqual(chip.disassemble(0x5121), "DW 0x5121")


class TestControlFlow(unittest.TestCase):
    def test_jump(self):
        chip = make_chip(0x1ABC)
        chip.step()
        self.assertEqual(chip.pc, 0xABC)

    def test_call_and_return(self):
        chip = make_chip(0x2206, 0x0000, 0x0000, 0x00EE)
        chip.step()
        self.assertEqual(chip.pc, 0x206)
        self.assertEqual(len(chip.stack), 1)
        chip.step()
        self.assertEqual(chip.pc, 0x202)
        self.assertEqual(len(chip.stack), 0)

    def test_return_with_empty_stack(self):
        chip = make_chip(0x00EE)
        with self.assertRaises(StackUnderflow):
            chip.step()
        self.assertEqual(chip.pc, 0x200)

    def test_stack_overflow(self):
        chip = make_chip(0x2200)     # calls itself forever
        run(chip, 16)
        with self.assertRaises(StackOverflow):
            chip.step()
        self.assertEqual(len(chip.stack), 16)

    def test_jump_plus_v0(self):
        chip = make_chip(0x6004, 0xB300)
        run(chip, 2)
        self.assertEqual(chip.pc, 0x304)

    def test_skips(self):
        cases = [
            ((0x6005, 0x3005), 0x206),
            ((0x6005, 0x3006), 0x204),
            ((0x6005, 0x4006), 0x206),
            ((0x6005, 0x4005), 0x204),
        ]
        for opcodes, pc in cases:
            chip = make_chip(*opcodes)
            run(chip, 2)
            self.assertEqual(chip.pc, pc, [hex(op) for op in opcodes])

    def test_register_skips(self):
        chip = make_chip(0x6007, 0x6107, 0x5010)
        run(chip, 3)
        self.assertEqual(chip.pc, 0x208)
        chip = make_chip(0x6007, 0x6107, 0x9010)
        run(chip, 3)
        self.assertEqual(chip.pc, 0x206)

    def test_fetch_outside_memory(self):
        chip = Chip8()
        chip.pc = 0xFFF
        with self.assertRaises(OutOfBoundsFetch):
            chip.step()

    def test_unsupported_opcode_is_skipped(self):
        chip = make_chip(0x5121, 0x6042)
        err = io.StringIO()
        with contextlib.redirect_stderr(err):
            chip.step()
        self.assertIn("0x5121", err.getvalue())
        self.assertEqual(chip.pc, 0x202)
        chip.step()
        self.assertEqual(chip.v_regs[0], 0x42)


class TestArithmetic(unittest.TestCase):
    def alu(self, vx, vy, opcode):
        chip = make_chip(0x6000 | vx, 0x6100 | vy, opcode)
        run(chip, 3)
        return chip

    def test_add_with_carry(self):
        chip = self.alu(250, 10, 0x8014)
        self.assertEqual((chip.v_regs[0], chip.v_regs[0xF]), (4, 1))

    def test_add_without_carry(self):
        chip = self.alu(10, 5, 0x8014)
        self.assertEqual((chip.v_regs[0], chip.v_regs[0xF]), (15, 0))

    def test_sub_with_borrow(self):
        chip = self.alu(5, 10, 0x8015)
        self.assertEqual((chip.v_regs[0], chip.v_regs[0xF]), (251, 1))

    def test_sub_without_borrow(self):
        chip = self.alu(10, 5, 0x8015)
        self.assertEqual((chip.v_regs[0], chip.v_regs[0xF]), (5, 0))

    def test_subn(self):
        chip = self.alu(10, 5, 0x8017)
        self.assertEqual((chip.v_regs[0], chip.v_regs[0xF]), (251, 1))
        chip = self.alu(5, 10, 0x8017)
        self.assertEqual((chip.v_regs[0], chip.v_regs[0xF]), (5, 0))

    def test_shifts(self):
        chip = self.alu(0b10000101, 0, 0x8016)
        self.assertEqual((chip.v_regs[0], chip.v_regs[0xF]), (0b01000010, 1))
        chip = self.alu(0b10000101, 0, 0x801E)
        self.assertEqual((chip.v_regs[0], chip.v_regs[0xF]), (0b00001010, 1))
        chip = self.alu(0b01000100, 0, 0x801E)
        self.assertEqual((chip.v_regs[0], chip.v_regs[0xF]), (0b10001000, 0))

    def test_logic(self):
        self.assertEqual(self.alu(0b1100, 0b1010, 0x8010).v_regs[0], 0b1010)
        self.assertEqual(self.alu(0b1100, 0b1010, 0x8011).v_regs[0], 0b1110)
        self.assertEqual(self.alu(0b1100, 0b1010, 0x8012).v_regs[0], 0b1000)
        self.assertEqual(self.alu(0b1100, 0b1010, 0x8013).v_regs[0], 0b0110)

    def test_flag_wins_over_result_in_vf(self):
        chip = make_chip(0x6FFF, 0x6102, 0x8F14)
        run(chip, 3)
        self.assertEqual(chip.v_regs[0xF], 1)

    def test_add_immediate_wraps_without_flag(self):
        chip = make_chip(0x60FF, 0x7002)
        run(chip, 2)
        self.assertEqual((chip.v_regs[0], chip.v_regs[0xF]), (1, 0))

    def test_random_is_masked(self):
        chip = make_chip(0xC00F, 0xC1F0, rng=itertools.cycle([0xAB]).__next__)
        run(chip, 2)
        self.assertEqual(chip.v_regs[0], 0x0B)
        self.assertEqual(chip.v_regs[1], 0xA0)

    def test_load_program_scenario(self):
        chip = Chip8()
        chip.load(bytes([0x60, 0x0A, 0x61, 0x05, 0x80, 0x14]))
        run(chip, 3)
        self.assertEqual(chip.v_regs[0], 15)
        self.assertEqual(chip.v_regs[0xF], 0)
        self.assertEqual(chip.pc, 0x206)


class TestIndexAndMemory(unittest.TestCase):
    def test_set_index(self):
        chip = make_chip(0xAFFF)
        chip.step()
        self.assertEqual(chip.idx, 0xFFF)

    def test_add_to_index_past_memory(self):
        chip = make_chip(0xAFFF, 0x60FF, 0xF01E, 0xF033)
        run(chip, 4)
        self.assertEqual(chip.idx, 0xFFF + 0xFF)
        self.assertEqual(chip.pc, 0x208)

    def test_font_address(self):
        chip = make_chip(0x600A, 0xF029)
        run(chip, 2)
        self.assertEqual(chip.idx, 50)

    def test_bcd(self):
        chip = make_chip(0x609C, 0xA300, 0xF033)
        run(chip, 3)
        self.assertEqual(list(chip.mem[0x300:0x303]), [1, 5, 6])

    def test_store_then_load(self):
        chip = make_chip(0x6011, 0x6122, 0x6233, 0x6344, 0xA400, 0xF255,
                         0x6000, 0x6100, 0x6200, 0xF265)
        run(chip, 10)
        self.assertEqual(chip.v_regs[:4], [0x11, 0x22, 0x33, 0x44])
        self.assertEqual(list(chip.mem[0x400:0x404]), [0x11, 0x22, 0x33, 0])
        self.assertEqual(chip.mem[0x3FF], 0)
        self.assertEqual(chip.idx, 0x400)


class TestScreen(unittest.TestCase):
    def test_clear_screen(self):
        chip = make_chip(0x00E0)
        chip.gfx[:] = bytes([1]) * len(chip.gfx)
        chip.step()
        self.assertFalse(any(chip.framebuffer))
        self.assertEqual(len(chip.framebuffer), 2048)
        self.assertTrue(chip.draw_flag)

    def test_draw_and_collision(self):
        # draw the "0" glyph twice at (1, 2): the second draw erases it
        chip = make_chip(0x6001, 0x6102, 0xA000, 0xD015, 0xD015)
        run(chip, 4)
        self.assertTrue(chip.draw_flag)
        self.assertEqual(chip.v_regs[0xF], 0)
        self.assertEqual(list(chip.gfx[1 + 2*64:5 + 2*64]), [1, 1, 1, 1])
        self.assertEqual(list(chip.gfx[1 + 3*64:5 + 3*64]), [1, 0, 0, 1])
        chip.step()
        self.assertEqual(chip.v_regs[0xF], 1)
        self.assertFalse(any(chip.gfx))

    def test_draw_wraps_around(self):
        chip = make_chip(0x603E, 0x611F, 0xA000, 0xD012)
        run(chip, 4)
        # top row 0xF0 at x=62..65 wraps to x=0,1, second row lands on y=0
        self.assertEqual(chip.gfx[62 + 31*64], 1)
        self.assertEqual(chip.gfx[63 + 31*64], 1)
        self.assertEqual(chip.gfx[0 + 31*64], 1)
        self.assertEqual(chip.gfx[1 + 31*64], 1)
        self.assertEqual(chip.gfx[62], 1)
        self.assertEqual(chip.gfx[1], 1)

    def test_framebuffer_is_read_only(self):
        chip = Chip8()
        with self.assertRaises(TypeError):
            chip.framebuffer[0] = 1


class TestTimers(unittest.TestCase):
    def test_delay_timer(self):
        chip = make_chip(0x6001, 0xF015, 0x0000)
        run(chip, 2)
        self.assertEqual(chip.dt, 0)
        chip = make_chip(0x6002, 0xF015, 0xF107)
        run(chip, 3)
        self.assertEqual(chip.v_regs[1], 1)
        self.assertEqual(chip.dt, 0)
        chip.step()
        self.assertEqual(chip.dt, 0)

    def test_beep_edge(self):
        chip = make_chip(0x6002, 0xF018, 0x1204)
        self.assertFalse(chip.step())
        self.assertFalse(chip.step())      # st: 2 -> 1
        self.assertTrue(chip.step())       # st: 1 -> 0
        self.assertFalse(chip.step())
        self.assertEqual(chip.st, 0)


class TestKeys(unittest.TestCase):
    def test_skip_if_pressed(self):
        chip = make_chip(0x6005, 0xE09E)
        chip.keypad.press(5)
        run(chip, 2)
        self.assertEqual(chip.pc, 0x206)
        chip = make_chip(0x6005, 0xE0A1)
        chip.keypad.press(5)
        run(chip, 2)
        self.assertEqual(chip.pc, 0x204)

    def test_wait_for_key(self):
        chip = make_chip(0xF30A)
        chip.step()
        self.assertTrue(chip.awaiting_key)
        run(chip, 5)
        self.assertEqual(chip.pc, 0x200)
        chip.keypad.press(0xB)
        chip.step()
        self.assertEqual(chip.state, State.RUNNING)
        self.assertEqual(chip.v_regs[3], 0xB)
        self.assertEqual(chip.pc, 0x202)

    def test_wait_ignores_keys_already_held(self):
        chip = make_chip(0xF00A)
        chip.keypad.press(0x1)
        run(chip, 3)
        self.assertTrue(chip.awaiting_key)
        chip.keypad.release(0x1)
        chip.step()
        chip.keypad.press(0x1)
        chip.step()
        self.assertFalse(chip.awaiting_key)
        self.assertEqual(chip.v_regs[0], 0x1)

    def test_timers_run_while_waiting(self):
        chip = make_chip(0x6003, 0xF015, 0xF00A)
        run(chip, 3)
        self.assertEqual(chip.dt, 1)
        chip.step()
        self.assertTrue(chip.awaiting_key)
        self.assertEqual(chip.dt, 0)


class TestReset(unittest.TestCase):
    def test_reset(self):
        chip = make_chip(0x6042, 0xA123, 0x2300)
        run(chip, 3)
        chip.keypad.press(2)
        chip.reset()
        self.assertEqual(chip.pc, 0x200)
        self.assertEqual(chip.idx, 0)
        self.assertEqual(chip.v_regs, [0] * 16)
        self.assertEqual(len(chip.stack), 0)
        self.assertEqual(chip.mem[0x200], 0)
        self.assertEqual(chip.mem[0], 0xF0)
        self.assertTrue(chip.keypad.untouched())
        chip.reset(keep_font=False)
        self.assertEqual(chip.mem[0], 0)

    def test_reset_repairs_overwritten_font(self):
        chip = make_chip(0xA000, 0x60AA, 0xF055)
        run(chip, 3)
        self.assertEqual(chip.mem[0], 0xAA)
        chip.reset()
        self.assertEqual(list(chip.mem[0:80]), C8_FONTS)

    def test_reset_brings_font_back_after_dropping_it(self):
        chip = Chip8()
        chip.reset(keep_font=False)
        chip.reset()
        self.assertEqual(list(chip.mem[0:80]), C8_FONTS)


if __name__ == "__main__":
    unittest.main()
