from amaranth import Cat, Elaboratable, Module, Signal


class SelectController(Elaboratable):
    """Active-low device select.

    Select drops with busy, on the cycle after a word is accepted. The bus
    clock trails the internal strobes by a register, so its final edge comes
    one cycle after busy falls; select is held for two more cycles and rises
    only after that edge. A word accepted while select is held keeps it low.
    """

    def __init__(self):
        self.busy = Signal()
        self.cs_n = Signal()

    def elaborate(self, platform):
        m = Module()

        # busy of the previous two cycles
        hold = Signal(2)
        m.d.sync += hold.eq(Cat(self.busy, hold[0]))
        m.d.comb += self.cs_n.eq(~(self.busy | hold.any()))

        return m
