from amaranth import Elaboratable, Module, Signal


class BusyTracker(Elaboratable):
    """Decides when a transfer may start and when the engine is idle again.

    I/O signals:
        I: tx_valid  -- request to transfer a word
        I: last_edge -- final serial clock edge of the transfer
        O: busy      -- transfer in progress
        O: ready     -- a new word is accepted, inverse of busy

    A request while busy is dropped.
    """

    def __init__(self):
        # Inputs
        self.tx_valid = Signal()
        self.last_edge = Signal()

        # Outputs
        self.busy = Signal()
        self.ready = Signal()

    def elaborate(self, platform):
        m = Module()

        with m.FSM(init="READY") as fsm:
            m.d.comb += [
                self.busy.eq(fsm.ongoing("BUSY")),
                self.ready.eq(fsm.ongoing("READY")),
            ]

            with m.State("READY"):
                with m.If(self.tx_valid):
                    m.next = "BUSY"

            with m.State("BUSY"):
                with m.If(self.last_edge):
                    m.next = "READY"

        return m
