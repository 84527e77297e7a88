from amaranth import Cat, Elaboratable, Module, Mux, Signal


class ReceiveCapture(Elaboratable):
    """
    Samples the serial data input.

    The input is sampled on the edge complementary to the one that drives
    the output: leading for phase 0, trailing for phase 1. When the last bit
    is sampled the word, including that bit, is published on `word` together
    with a one-cycle `valid` pulse.

    Params:
      config : MasterConfig
    """

    def __init__(self, config):
        self.config = config

        # Inputs
        self.stable = Signal()
        self.leading = Signal()
        self.trailing = Signal()
        self.sdi = Signal()

        # Outputs
        self.word = Signal(config.word_width)
        self.valid = Signal()
        self.index = Signal(range(config.word_width), init=config.first_bit)

    def elaborate(self, platform):
        m = Module()
        cfg = self.config
        width = cfg.word_width

        shift = Signal(width)
        # shift register with the bit sampled in this cycle already in place
        assembled = Signal(width)
        m.d.comb += assembled.eq(
            Cat(*[Mux(self.index == i, self.sdi, shift[i]) for i in range(width)])
        )

        sample = self.trailing if cfg.phase else self.leading

        if cfg.msb_first:
            step = self.index - 1
        else:
            step = self.index + 1

        m.d.sync += self.valid.eq(0)

        with m.If(sample):
            m.d.sync += shift.eq(assembled)
            with m.If(self.index == cfg.last_bit):
                m.d.sync += [
                    self.word.eq(assembled),
                    self.valid.eq(1),
                ]
            with m.Else():
                m.d.sync += self.index.eq(step)
        with m.Elif(self.stable):
            m.d.sync += self.index.eq(cfg.first_bit)

        return m
