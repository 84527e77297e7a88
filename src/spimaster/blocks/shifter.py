from amaranth import Elaboratable, Module, Signal


class TransmitShifter(Elaboratable):
    """
    Drives the serial data output.

    While ready the line is held at 0 and the bit index is loaded with its
    first bit. Devices with phase 0 sample on the leading edge, so the first
    bit is put on the line as soon as the word is stable and every following
    bit on a trailing edge. With phase 1 each bit is put on the line on a
    leading edge.

    Params:
      config : MasterConfig
    """

    def __init__(self, config):
        self.config = config

        # Inputs
        self.ready = Signal()
        self.stable = Signal()
        self.leading = Signal()
        self.trailing = Signal()
        self.word = Signal(config.word_width)

        # Outputs
        self.sdo = Signal()
        self.index = Signal(range(config.word_width), init=config.first_bit)

    def elaborate(self, platform):
        m = Module()
        cfg = self.config

        preload = Signal()
        update = self.leading if cfg.phase else self.trailing
        if cfg.phase == 0:
            m.d.comb += preload.eq(self.stable)

        if cfg.msb_first:
            step = self.index - 1
        else:
            step = self.index + 1

        with m.If(self.ready):
            m.d.sync += [
                self.index.eq(cfg.first_bit),
                self.sdo.eq(0),
            ]
        with m.Elif(preload):
            m.d.sync += [
                self.sdo.eq(self.word[cfg.first_bit]),
                self.index.eq(cfg.next_bit(cfg.first_bit)),
            ]
        with m.Elif(update):
            m.d.sync += self.sdo.eq(self.word.bit_select(self.index, 1))
            # index stays on the last bit
            with m.If(self.index != cfg.last_bit):
                m.d.sync += self.index.eq(step)

        return m
