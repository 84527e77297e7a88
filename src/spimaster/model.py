"""Reference model

Cycle-accurate model of the SPI master in plain Python. The model is a
single function, `step`, which computes the state after a clock cycle from
the state before it and the inputs applied during it. All parts of the
engine are evaluated from the same snapshot, like the registers in the
gateware. The gateware is verified against this model cycle by cycle.

- `Inputs`: values applied during one cycle
- `State`: immutable snapshot of every register in the engine
- `step`: next state, the reset branch is evaluated first
- `ReferenceMaster`: stateful wrapper with transfer helpers
"""

import logging
from dataclasses import dataclass

logger = logging.getLogger(__name__)


class CounterRangeError(Exception):
    """Raised when a bounded counter leaves its range.

    Counters are checked instead of wrapped; leaving the range means the
    configuration or the logic is broken.
    """

    pass


@dataclass(frozen=True)
class Inputs:
    rst_n: int = 1
    tx_valid: int = 0
    tx_word: int = 0
    sdi: int = 0


@dataclass(frozen=True)
class State:
    # busy / ready tracker
    busy: int
    # device select, busy of the previous two cycles
    hold: int
    # input latch
    stable: int
    tx_buffer: int
    # edge generator
    budget: int
    counter: int
    serial_clk: int
    sck: int
    leading: int
    trailing: int
    # transmit shift engine
    tx_index: int
    sdo: int
    # receive capture engine
    rx_index: int
    rx_shift: int
    rx_word: int
    rx_valid: int

    @property
    def tx_ready(self):
        return 1 - self.busy

    @property
    def cs_n(self):
        return 0 if self.busy or self.hold else 1

    def outputs(self):
        """Values visible on the ports of the engine."""
        return dict(
            tx_ready=self.tx_ready,
            rx_word=self.rx_word,
            rx_valid=self.rx_valid,
            sck=self.sck,
            sdo=self.sdo,
            cs_n=self.cs_n,
        )


def reset_state(config):
    """State of an idle engine, also forced while reset is asserted."""
    return State(
        busy=0,
        hold=0,
        stable=0,
        tx_buffer=0,
        budget=0,
        counter=0,
        serial_clk=config.polarity,
        sck=config.polarity,
        leading=0,
        trailing=0,
        tx_index=config.first_bit,
        sdo=0,
        rx_index=config.first_bit,
        rx_shift=0,
        rx_word=0,
        rx_valid=0,
    )


def _check(name, value, upper):
    if not 0 <= value <= upper:
        raise CounterRangeError(f"{name}={value} outside [0, {upper}]")
    return value


def _bit(word, index):
    return (word >> index) & 1


def step(config, state, inputs):
    """Returns the state after one system clock cycle."""
    if not inputs.rst_n:
        return reset_state(config)

    width = config.word_width
    half = config.prescale
    ready = not state.busy
    accept = ready and inputs.tx_valid

    # edge generator, budget is loaded in the cycle the word is stable
    budget = config.edges if state.stable else state.budget
    counter = state.counter
    serial_clk = state.serial_clk
    leading = trailing = last_edge = False
    if budget:
        if counter == 2 * half - 1:
            trailing = True
        elif counter == half - 1:
            leading = True
        if leading or trailing:
            last_edge = budget == 1
            serial_clk ^= 1
            budget -= 1
        counter = 0 if trailing else counter + 1

    # busy / ready tracker
    if accept:
        busy = 1
    elif state.busy and last_edge:
        busy = 0
    else:
        busy = state.busy

    # input latch
    if accept:
        tx_buffer = inputs.tx_word & ((1 << width) - 1)
    else:
        tx_buffer = state.tx_buffer

    # transmit shift engine, strobes are registered
    tx_index, sdo = state.tx_index, state.sdo
    update = state.leading if config.phase else state.trailing
    if ready:
        tx_index, sdo = config.first_bit, 0
    elif state.stable and config.phase == 0:
        sdo = _bit(state.tx_buffer, config.first_bit)
        tx_index = config.next_bit(config.first_bit)
    elif update:
        sdo = _bit(state.tx_buffer, state.tx_index)
        tx_index = config.next_bit(state.tx_index)

    # receive capture engine
    rx_index, rx_shift, rx_word = state.rx_index, state.rx_shift, state.rx_word
    rx_valid = 0
    sample = state.trailing if config.phase else state.leading
    if sample:
        mask = 1 << state.rx_index
        rx_shift = (state.rx_shift & ~mask) | (mask if inputs.sdi else 0)
        if state.rx_index == config.last_bit:
            rx_word, rx_valid = rx_shift, 1
        else:
            rx_index = config.next_bit(state.rx_index)
    elif state.stable:
        rx_index = config.first_bit

    return State(
        busy=busy,
        hold=((state.hold << 1) | state.busy) & 0b11,
        stable=int(accept),
        tx_buffer=tx_buffer,
        budget=_check("budget", budget, config.edges),
        counter=_check("counter", counter, 2 * half - 1),
        serial_clk=serial_clk,
        sck=state.serial_clk,
        leading=int(leading),
        trailing=int(trailing),
        tx_index=_check("tx_index", tx_index, width - 1),
        sdo=sdo,
        rx_index=_check("rx_index", rx_index, width - 1),
        rx_shift=rx_shift,
        rx_word=rx_word,
        rx_valid=rx_valid,
    )


class ReferenceMaster:
    """Stateful wrapper around `step`.

    Args:
        config (MasterConfig): configuration of the modelled engine
        loopback (bool): feed sdo back into sdi, like a wire on the bus
    """

    def __init__(self, config, loopback=False):
        self.config = config
        self.loopback = loopback
        self.cycles = 0
        self.state = reset_state(config)

    def reset(self):
        self.state = reset_state(self.config)

    def tick(self, **inputs):
        """Advances one cycle and returns the outputs after it."""
        if self.loopback:
            inputs["sdi"] = self.state.sdo
        self.state = step(self.config, self.state, Inputs(**inputs))
        self.cycles += 1
        return self.state.outputs()

    def transfer(self, word, slave=None, timeout=None):
        """Waits until ready, transfers a word and returns the received word.

        slave -- optional callable, gets the outputs of each cycle and
                 returns the level of sdi during that cycle
        timeout -- bound in cycles on both the wait and the transfer
        """
        if timeout is None:
            timeout = self.config.transfer_ticks + 3

        def respond(out):
            return slave(out) if slave else 0

        out = self.state.outputs()
        sdi = respond(out)
        for _ in range(timeout):
            if out["tx_ready"]:
                break
            out = self.tick(sdi=sdi)
            sdi = respond(out)
        else:
            raise RuntimeError(f"Engine not ready within {timeout} cycles")

        out = self.tick(tx_valid=1, tx_word=word, sdi=sdi)
        for _ in range(timeout):
            # the slave sees every cycle, including the last one
            sdi = respond(out)
            if out["rx_valid"]:
                logger.debug("Sent %#x, received %#x", word, out["rx_word"])
                return out["rx_word"]
            out = self.tick(sdi=sdi)
        raise RuntimeError(f"No word received within {timeout} cycles")
