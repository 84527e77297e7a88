from amaranth import Elaboratable, Module, Mux, Signal


class EdgeGenerator(Elaboratable):
    """
    Serial clock divider and edge strobes.

    A transfer is armed by the one-cycle `stable` pulse of the input latch,
    which loads an edge budget of 2 * word_width. The arming cycle already
    counts, so a transfer lasts exactly edges * prescale cycles.
    Every `prescale` cycles the internal serial clock toggles and a
    registered one-cycle strobe is raised:

      leading  : idle -> active transition, counter reached prescale - 1
      trailing : active -> idle transition, counter reached 2 * prescale - 1

    The serial clock on the bus (`sck`) is the internal clock passed through
    one more register and thus toggles one cycle after each strobe.

    Params:
      config : MasterConfig
    """

    def __init__(self, config):
        self.config = config

        # Inputs
        self.stable = Signal()  # word latched, start transfer

        # Outputs
        self.leading = Signal()
        self.trailing = Signal()
        self.last_edge = Signal()  # combinational, final edge decided this cycle
        self.running = Signal()
        self.serial_clk = Signal(init=config.polarity)
        self.sck = Signal(init=config.polarity)
        self.counter = Signal(range(config.period))
        self.budget = Signal(range(config.edges + 1))

    def elaborate(self, platform):
        m = Module()
        cfg = self.config
        half = cfg.prescale

        # budget as seen in this cycle, loaded when a transfer is armed
        budget = Signal.like(self.budget)
        m.d.comb += [
            budget.eq(Mux(self.stable, cfg.edges, self.budget)),
            self.running.eq(budget != 0),
        ]

        # strobes are high for a single cycle only
        m.d.sync += [
            self.leading.eq(0),
            self.trailing.eq(0),
            self.sck.eq(self.serial_clk),
        ]

        with m.If(self.running):
            with m.If(self.counter == 2 * half - 1):
                m.d.sync += [
                    self.trailing.eq(1),
                    self.serial_clk.eq(~self.serial_clk),
                    self.counter.eq(0),
                    self.budget.eq(budget - 1),
                ]
                m.d.comb += self.last_edge.eq(budget == 1)
            with m.Elif(self.counter == half - 1):
                m.d.sync += [
                    self.leading.eq(1),
                    self.serial_clk.eq(~self.serial_clk),
                    self.counter.eq(self.counter + 1),
                    self.budget.eq(budget - 1),
                ]
                m.d.comb += self.last_edge.eq(budget == 1)
            with m.Else():
                m.d.sync += [
                    self.counter.eq(self.counter + 1),
                    self.budget.eq(budget),
                ]

        return m
