from amaranth import Elaboratable, Module, Signal


class InputLatch(Elaboratable):
    """
    Captures the word to transmit.

    The word is taken when the engine is ready and `tx_valid` is high.
    One cycle later `stable` pulses; from then on `word` no longer follows
    `tx_word` until the next accepted transfer.
    """

    def __init__(self, config):
        self.config = config

        # Inputs
        self.ready = Signal()
        self.tx_valid = Signal()
        self.tx_word = Signal(config.word_width)

        # Outputs
        self.word = Signal(config.word_width)
        self.stable = Signal()

    def elaborate(self, platform):
        m = Module()

        m.d.sync += self.stable.eq(0)
        with m.If(self.ready & self.tx_valid):
            m.d.sync += [
                self.word.eq(self.tx_word),
                self.stable.eq(1),
            ]

        return m
