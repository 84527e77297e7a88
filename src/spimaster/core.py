from amaranth import Elaboratable, Module, Signal
from amaranth.hdl import ResetInserter
from amaranth.lib.io import Buffer

from .blocks import (
    BusyTracker,
    EdgeGenerator,
    InputLatch,
    ReceiveCapture,
    SelectController,
    TransmitShifter,
)
from .spi_helpers import connect_spi_master


class SPIBus:
    """Master side of a four wire SPI bus."""

    def __init__(self):
        self.sck = Signal(name="sck")
        self.sdo = Signal(name="sdo")  # MOSI
        self.sdi = Signal(name="sdi")  # MISO
        self.cs_n = Signal(name="cs_n")


class SPIMaster(Elaboratable):
    """SPI master transferring a single word at a time.

    I/O signals:
        I: rst_n     -- active-low reset, reinitializes the engine every cycle it is low
        I: tx_word   -- word to transmit, latched when accepted
        I: tx_valid  -- request to transmit tx_word, dropped when not tx_ready
        O: tx_ready  -- a new word can be accepted
        O: rx_word   -- received word, valid when rx_valid is high
        O: rx_valid  -- one-cycle strobe, a word has been received

        spi          -- SPIBus with sck, sdo, sdi and active-low cs_n

    Timing, with the cycle after acceptance counted as cycle 1:
        - tx_ready is low for 2 * word_width * prescale cycles
        - the bus clock toggles every prescale cycles, one cycle after the
          internal leading and trailing strobes
        - cs_n is asserted with tx_ready low and released two cycles after
          tx_ready rises, once the final bus clock edge has passed

    If a platform is passed, the bus is connected to the `spi_master`
    resource and the first LED is lit while busy.
    """

    def __init__(self, config):
        """
        config  -- MasterConfig, fixed for the lifetime of the engine
        """
        self.config = config
        width = config.word_width

        self.spi = SPIBus()

        self.rst_n = Signal(init=1)
        self.tx_word = Signal(width)
        self.tx_valid = Signal()
        self.tx_ready = Signal()
        self.rx_word = Signal(width)
        self.rx_valid = Signal()

        self.tracker = BusyTracker()
        self.latch = InputLatch(config)
        self.clock = EdgeGenerator(config)
        self.shifter = TransmitShifter(config)
        self.capture = ReceiveCapture(config)
        self.select = SelectController()

    def elaborate(self, platform):
        m = Module()
        spi = self.spi

        reset = Signal()
        m.d.comb += reset.eq(~self.rst_n)

        tracker = self.tracker
        latch = self.latch
        clock = self.clock
        shifter = self.shifter
        capture = self.capture
        select = self.select

        # reset branch is evaluated first in every block
        m.submodules.tracker = ResetInserter(reset)(tracker)
        m.submodules.latch = ResetInserter(reset)(latch)
        m.submodules.clock = ResetInserter(reset)(clock)
        m.submodules.shifter = ResetInserter(reset)(shifter)
        m.submodules.capture = ResetInserter(reset)(capture)
        m.submodules.select = ResetInserter(reset)(select)

        m.d.comb += [
            # busy / ready gates the latch
            tracker.tx_valid.eq(self.tx_valid),
            tracker.last_edge.eq(clock.last_edge),
            latch.ready.eq(tracker.ready),
            latch.tx_valid.eq(self.tx_valid),
            latch.tx_word.eq(self.tx_word),
            # latched word arms the edge budget
            clock.stable.eq(latch.stable),
            # strobes drive both shift engines
            shifter.ready.eq(tracker.ready),
            shifter.stable.eq(latch.stable),
            shifter.leading.eq(clock.leading),
            shifter.trailing.eq(clock.trailing),
            shifter.word.eq(latch.word),
            capture.stable.eq(latch.stable),
            capture.leading.eq(clock.leading),
            capture.trailing.eq(clock.trailing),
            capture.sdi.eq(spi.sdi),
            select.busy.eq(tracker.busy),
            # outputs
            self.tx_ready.eq(tracker.ready),
            self.rx_word.eq(capture.word),
            self.rx_valid.eq(capture.valid),
            spi.sck.eq(clock.sck),
            spi.sdo.eq(shifter.sdo),
            spi.cs_n.eq(select.cs_n),
        ]

        if platform is not None:  # Building module
            board_spi = platform.request("spi_master", dir="-")
            connect_spi_master(m, board_spi, spi)
            led = platform.request("led", 0, dir="-")
            m.submodules += [
                led_buf := Buffer("o", led),
            ]
            m.d.comb += led_buf.o.eq(tracker.busy)

        return m
