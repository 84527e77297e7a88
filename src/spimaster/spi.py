"""Simulation helpers for the SPI master."""

from .config import MasterConfig
from .core import SPIMaster
from .utils import GatewareTestCase


class SlaveModel:
    """Behavioural SPI slave.

    Call `update` once per system clock cycle with the bus levels after the
    cycle; it returns the level the slave drives on sdi. Data from the master
    is sampled with the level present before an edge of sck, like a flip-flop
    clocked by sck. The response word is shifted in the same bit order as
    the master uses.

    Edges of sck only count while cs_n was and is low. Releasing select
    discards a partial word; if select stays low after a word, the next
    word follows directly.
    """

    def __init__(self, config, response=0):
        self.config = config
        self.response = response
        self.received = None
        self.words = []

        self.active = False
        self.sdi = 0
        self._prev = dict(sck=config.polarity, cs_n=1, sdo=0)

    def _next_word(self):
        cfg = self.config
        self._tx_index = cfg.first_bit
        self._rx_index = cfg.first_bit
        self._shift = 0
        self._count = 0
        if cfg.phase == 0:
            # first bit is on the line before the first edge
            self.sdi = (self.response >> cfg.first_bit) & 1

    def _edge(self, leading, sdo):
        cfg = self.config
        samples = leading if cfg.phase == 0 else not leading
        if samples:
            self._shift |= sdo << self._rx_index
            self._rx_index = cfg.next_bit(self._rx_index)
            self._count += 1
            if self._count == cfg.word_width:
                self.received = self._shift
                self.words.append(self._shift)
                if cfg.phase:
                    self._next_word()
        elif cfg.phase == 0:
            if self._count == cfg.word_width:
                self._next_word()
            elif self._tx_index != cfg.last_bit:
                self._tx_index = cfg.next_bit(self._tx_index)
                self.sdi = (self.response >> self._tx_index) & 1
        else:
            self.sdi = (self.response >> self._tx_index) & 1
            self._tx_index = cfg.next_bit(self._tx_index)

    def update(self, sck, cs_n, sdo):
        prev = self._prev

        if self.active and not cs_n and sck != prev["sck"]:
            self._edge(prev["sck"] == self.config.polarity, prev["sdo"])

        if cs_n and not prev["cs_n"]:
            self.active = False
        elif prev["cs_n"] and not cs_n:
            self.active = True
            self._next_word()

        self._prev = dict(sck=sck, cs_n=cs_n, sdo=sdo)
        return self.sdi


class SPIMasterTestCase(GatewareTestCase):
    """Extended version of the GatewareTestCase for the SPI master.

    Adds helpers which step the simulation with either a wire loopback
    (sdo to sdi) or a SlaveModel on the bus:
        - step
        - sample
        - submit
        - record
        - transfer
    """

    FRAGMENT_UNDER_TEST = SPIMaster
    FRAGMENT_ARGUMENTS = {"config": MasterConfig()}

    loopback = False

    @property
    def config(self):
        return self.dut.config

    async def initialize_signals(self, sim):
        self.slave = None

    def sample(self, sim):
        """Levels on the ports of the engine in the current cycle."""
        dut = self.dut
        return dict(
            tx_ready=sim.get(dut.tx_ready),
            rx_word=sim.get(dut.rx_word),
            rx_valid=sim.get(dut.rx_valid),
            sck=sim.get(dut.spi.sck),
            sdo=sim.get(dut.spi.sdo),
            cs_n=sim.get(dut.spi.cs_n),
        )

    async def step(self, sim):
        """Advances a single cycle."""
        spi = self.dut.spi
        if self.loopback:
            sim.set(spi.sdi, sim.get(spi.sdo))
        await sim.tick()
        if self.slave is not None:
            sdi = self.slave.update(
                sim.get(spi.sck), sim.get(spi.cs_n), sim.get(spi.sdo)
            )
            sim.set(spi.sdi, sdi)

    async def submit(self, sim, word):
        """Requests a transfer during a single cycle."""
        sim.set(self.dut.tx_word, word)
        sim.set(self.dut.tx_valid, 1)
        await self.step(sim)
        sim.set(self.dut.tx_valid, 0)

    async def record(self, sim, cycles):
        """Samples the ports for a number of cycles, starting with the current one."""
        trace = []
        for _ in range(cycles):
            trace.append(self.sample(sim))
            await self.step(sim)
        return trace

    async def transfer(self, sim, word, *, timeout=None):
        """Waits until ready, transfers a word and returns the received word."""
        if timeout is None:
            timeout = self.config.transfer_ticks + 2
        for _ in range(timeout):
            if sim.get(self.dut.tx_ready):
                break
            await self.step(sim)
        else:
            raise RuntimeError("Engine did not become ready")

        await self.submit(sim, word)
        for _ in range(timeout):
            await self.step(sim)
            if sim.get(self.dut.rx_valid):
                return sim.get(self.dut.rx_word)
        raise RuntimeError(f"No word received within {timeout} cycles")
