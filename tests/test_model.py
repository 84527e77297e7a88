import itertools
import random
import unittest
from dataclasses import replace

from spimaster.config import BitOrder, MasterConfig
from spimaster.model import (
    CounterRangeError,
    Inputs,
    ReferenceMaster,
    reset_state,
    step,
)
from spimaster.spi import SlaveModel


def all_configs(prescales=(1, 2, 5)):
    for width, mode, order, prescale in itertools.product(
        (8, 16),
        range(4),
        (BitOrder.MSB_FIRST, BitOrder.LSB_FIRST),
        prescales,
    ):
        yield MasterConfig(
            word_width=width, mode=mode, bit_order=order, prescale=prescale
        )


def record(master, cycles, **first):
    """Outputs of the cycle after `first` is applied and the cycles after it."""
    trace = [master.tick(**first)]
    for _ in range(cycles - 1):
        trace.append(master.tick())
    return trace


class TestScenario(unittest.TestCase):
    """8 bit, mode 0, msb first, prescale 4, word 0xA5 on a wire loopback."""

    def setUp(self):
        self.cfg = MasterConfig(word_width=8, mode=0, prescale=4)
        self.master = ReferenceMaster(self.cfg, loopback=True)
        self.trace = record(self.master, 67, tx_valid=1, tx_word=0xA5)

    def test_busy_for_64_cycles(self):
        busy = [k for k, out in enumerate(self.trace) if not out["tx_ready"]]
        self.assertEqual(busy, list(range(64)))

    def test_select_covers_final_clock_edge(self):
        selected = [k for k, out in enumerate(self.trace) if not out["cs_n"]]
        self.assertEqual(selected, list(range(66)))

    def test_data_out_sequence(self):
        bits = [self.trace[(2 * j + 1) * 4]["sdo"] for j in range(8)]
        self.assertEqual(bits, [1, 0, 1, 0, 0, 1, 0, 1])
        # each bit is held for a full bit cell
        for j, bit in enumerate(bits):
            cell = self.trace[8 * j + 1 : 8 * j + 9]
            self.assertEqual({out["sdo"] for out in cell}, {bit})

    def test_received_word(self):
        valid = [k for k, out in enumerate(self.trace) if out["rx_valid"]]
        self.assertEqual(valid, [(2 * 8 - 1) * 4 + 1])
        self.assertEqual(self.trace[valid[0]]["rx_word"], 0xA5)

    def test_clock_edges(self):
        toggles = [
            k
            for k in range(1, len(self.trace))
            if self.trace[k]["sck"] != self.trace[k - 1]["sck"]
        ]
        self.assertEqual(toggles, [4 * n + 1 for n in range(1, 17)])
        self.assertEqual(self.trace[0]["sck"], 0)
        self.assertEqual(self.trace[-1]["sck"], 0)


class TestProperties(unittest.TestCase):
    def test_loopback_all_configs(self):
        rng = random.Random(1)
        for cfg in all_configs():
            master = ReferenceMaster(cfg, loopback=True)
            mask = (1 << cfg.word_width) - 1
            words = [0, mask, 0xA5A5 & mask, 0x8001 & mask, rng.getrandbits(cfg.word_width)]
            with self.subTest(cfg=cfg):
                for word in words:
                    self.assertEqual(master.transfer(word), word)

    def test_transfer_duration(self):
        for cfg in all_configs():
            master = ReferenceMaster(cfg)
            trace = record(master, cfg.transfer_ticks + 3, tx_valid=1, tx_word=1)
            with self.subTest(cfg=cfg):
                busy = [k for k, out in enumerate(trace) if not out["tx_ready"]]
                self.assertEqual(busy, list(range(cfg.transfer_ticks)))
                valid = [k for k, out in enumerate(trace) if out["rx_valid"]]
                if cfg.phase:
                    self.assertEqual(valid, [cfg.transfer_ticks + 1])
                else:
                    self.assertEqual(
                        valid, [(cfg.edges - 1) * cfg.prescale + 1]
                    )

    def test_clock_period(self):
        for prescale in (1, 2, 3, 7):
            cfg = MasterConfig(mode=2, prescale=prescale)
            master = ReferenceMaster(cfg)
            trace = record(master, cfg.transfer_ticks + 3, tx_valid=1)
            toggles = [
                k for k in range(1, len(trace)) if trace[k]["sck"] != trace[k - 1]["sck"]
            ]
            with self.subTest(prescale=prescale):
                self.assertEqual(len(toggles), cfg.edges)
                self.assertEqual(
                    {b - a for a, b in zip(toggles, toggles[1:])}, {prescale}
                )
                # same direction toggles are a full period apart
                self.assertEqual(
                    {b - a for a, b in zip(toggles[::2], toggles[2::2])},
                    {2 * prescale},
                )
                # idle level of mode 2 is high
                self.assertEqual(trace[0]["sck"], 1)
                self.assertEqual(trace[-1]["sck"], 1)

    def test_request_while_busy_is_dropped(self):
        cfg = MasterConfig(prescale=2)
        master = ReferenceMaster(cfg, loopback=True)
        trace = record(master, 5, tx_valid=1, tx_word=0x5A)
        trace.append(master.tick(tx_valid=1, tx_word=0xFF))
        trace += record(master, cfg.transfer_ticks + 20)
        busy = [k for k, out in enumerate(trace) if not out["tx_ready"]]
        self.assertEqual(busy, list(range(cfg.transfer_ticks)))
        words = [out["rx_word"] for out in trace if out["rx_valid"]]
        self.assertEqual(words, [0x5A])

    def test_reset_mid_transfer(self):
        for cfg in all_configs(prescales=(3,)):
            master = ReferenceMaster(cfg, loopback=True)
            trace = record(master, cfg.transfer_ticks // 2, tx_valid=1, tx_word=3)
            with self.subTest(cfg=cfg):
                self.assertEqual(trace[-1]["tx_ready"], 0)
                out = master.tick(rst_n=0)
                self.assertEqual(out["tx_ready"], 1)
                self.assertEqual(out["cs_n"], 1)
                self.assertEqual(out["sck"], cfg.polarity)
                self.assertEqual(out["sdo"], 0)
                # abandoned, nothing is published
                trace = record(master, cfg.transfer_ticks)
                self.assertFalse(any(out["rx_valid"] for out in trace))
                self.assertEqual(master.transfer(0x42), 0x42)

    def test_slave_exchange(self):
        for cfg in all_configs(prescales=(1, 3)):
            mask = (1 << cfg.word_width) - 1
            slave = SlaveModel(cfg, response=0xC3A5 & mask)
            master = ReferenceMaster(cfg)

            def bus(out):
                return slave.update(out["sck"], out["cs_n"], out["sdo"])

            with self.subTest(cfg=cfg):
                received = master.transfer(0x5A3C & mask, slave=bus)
                self.assertEqual(received, 0xC3A5 & mask)
                self.assertEqual(slave.received, 0x5A3C & mask)

    def test_back_to_back_transfers(self):
        # with phase 0 the word arrives before the engine is ready again
        for cfg in all_configs(prescales=(2, 5)):
            master = ReferenceMaster(cfg, loopback=True)
            mask = (1 << cfg.word_width) - 1
            words = [0x5A & mask, 0xC3C3 & mask, mask]
            with self.subTest(cfg=cfg):
                self.assertEqual([master.transfer(word) for word in words], words)

    def test_no_clock_edge_while_deselected(self):
        for cfg in all_configs():
            master = ReferenceMaster(cfg, loopback=True)
            trace = [master.tick()]
            trace += record(master, cfg.transfer_ticks + 6, tx_valid=1, tx_word=0xA5)
            toggles = [
                k for k in range(1, len(trace)) if trace[k]["sck"] != trace[k - 1]["sck"]
            ]
            released = [
                k
                for k in range(1, len(trace))
                if trace[k]["cs_n"] and not trace[k - 1]["cs_n"]
            ]
            with self.subTest(cfg=cfg):
                self.assertEqual(len(toggles), cfg.edges)
                deselected = [
                    k for k in toggles if trace[k]["cs_n"] or trace[k - 1]["cs_n"]
                ]
                self.assertEqual(deselected, [])
                # released one cycle after the final edge
                self.assertEqual(released, [toggles[-1] + 1])

    def test_slave_back_to_back(self):
        for cfg in all_configs(prescales=(1, 3)):
            mask = (1 << cfg.word_width) - 1
            slave = SlaveModel(cfg, response=0x9A5C & mask)
            master = ReferenceMaster(cfg)
            words = [0x5A3C & mask, 0x0FF0 & mask, 0x8001 & mask]

            def bus(out):
                return slave.update(out["sck"], out["cs_n"], out["sdo"])

            with self.subTest(cfg=cfg):
                received = [master.transfer(word, slave=bus) for word in words]
                self.assertEqual(received, [0x9A5C & mask] * 3)
                self.assertEqual(slave.words, words)

    def test_slave_discards_partial_word(self):
        cfg = MasterConfig(mode=1, prescale=2)
        slave = SlaveModel(cfg, response=0x96)
        master = ReferenceMaster(cfg)

        def bus(out):
            return slave.update(out["sck"], out["cs_n"], out["sdo"])

        out = master.tick(tx_valid=1, tx_word=0xF0)
        for _ in range(cfg.transfer_ticks // 2):
            out = master.tick(sdi=bus(out))
        bus(out)
        self.assertTrue(slave.active)

        # reset releases select halfway through the word
        bus(master.tick(rst_n=0))
        self.assertFalse(slave.active)
        self.assertEqual(slave.words, [])

        self.assertEqual(master.transfer(0x3C, slave=bus), 0x96)
        self.assertEqual(slave.words, [0x3C])


class TestStep(unittest.TestCase):
    def test_reset_branch_first(self):
        cfg = MasterConfig(mode=3)
        state = step(cfg, reset_state(cfg), Inputs(tx_valid=1, tx_word=9))
        self.assertEqual(state.busy, 1)
        state = step(cfg, state, Inputs(rst_n=0, tx_valid=1))
        self.assertEqual(state, reset_state(cfg))

    def test_counter_range_checked(self):
        cfg = MasterConfig(prescale=4)
        state = replace(reset_state(cfg), busy=1, budget=cfg.edges + 1)
        with self.assertRaises(CounterRangeError):
            step(cfg, state, Inputs())

    def test_transfer_waits_for_ready(self):
        master = ReferenceMaster(MasterConfig(), loopback=True)
        master.tick(tx_valid=1)
        self.assertEqual(master.transfer(0x81), 0x81)

    def test_transfer_timeout(self):
        master = ReferenceMaster(MasterConfig())
        master.tick(tx_valid=1)
        with self.assertRaises(RuntimeError):
            master.transfer(1, timeout=5)


if __name__ == "__main__":
    unittest.main()
