"""Master configuration

Construction-time settings of the SPI master. The settings are fixed for the
lifetime of the engine and are shared by every block.

- `BitOrder`: order in which the bits of a word are put on the bus
- `decode_mode`: maps an SPI mode code on clock polarity and phase
- `MasterConfig`: validated configuration with all derived timing values
"""

import logging
from math import ceil

from .constants import MODES, WORD_SIZES

logger = logging.getLogger(__name__)


class BitOrder:
    """Order in which the bits of a word are shifted."""

    MSB_FIRST = 0
    LSB_FIRST = 1


def decode_mode(mode):
    """Returns (polarity, phase) for an SPI mode code.

    polarity -- idle level of the serial clock
    phase    -- 0 samples on the first edge of a bit cell, 1 on the second
    """
    return (mode >> 1) & 1, mode & 1


class MasterConfig:
    """
    Holds the configuration of the SPI master.

    Args:
        word_width (int): bits per transfer, one of WORD_SIZES
        mode (int): SPI mode code, 0 to 3
        bit_order (int): BitOrder.MSB_FIRST or BitOrder.LSB_FIRST
        prescale (int): half serial clock period in system clock cycles

    Invalid values raise a ValueError; an engine can not be created
    with an invalid configuration.
    """

    def __init__(
        self, word_width=8, mode=0, bit_order=BitOrder.MSB_FIRST, prescale=4
    ):
        if word_width not in WORD_SIZES:
            raise ValueError(
                f"Word width {word_width} not supported, use one of {WORD_SIZES}"
            )
        if mode not in MODES:
            raise ValueError(f"Mode {mode} invalid, use one of {MODES}")
        if bit_order not in (BitOrder.MSB_FIRST, BitOrder.LSB_FIRST):
            raise ValueError(f"Bit order {bit_order} invalid")
        if isinstance(prescale, bool) or not isinstance(prescale, int):
            raise ValueError(f"Prescale must be an integer, got {prescale!r}")
        if prescale < 1:
            raise ValueError(f"Prescale must be at least 1, got {prescale}")

        self._word_width = word_width
        self._mode = mode
        self._bit_order = bit_order
        self._prescale = prescale
        self._polarity, self._phase = decode_mode(mode)
        logger.debug(
            "%r: transfer takes %d cycles, %d edges",
            self,
            self.transfer_ticks,
            self.edges,
        )

    @classmethod
    def from_frequency(cls, sys_hz, sck_hz, **kwargs):
        """Creates a configuration from real-world clock rates.

        The prescale is rounded up, the bus never runs faster than sck_hz.
        """
        if sck_hz <= 0 or sys_hz <= 0:
            raise ValueError("Frequencies must be positive")
        prescale = max(1, ceil(sys_hz / (2 * sck_hz)))
        return cls(prescale=prescale, **kwargs)

    @property
    def word_width(self):
        return self._word_width

    @property
    def mode(self):
        return self._mode

    @property
    def bit_order(self):
        return self._bit_order

    @property
    def prescale(self):
        return self._prescale

    @property
    def polarity(self):
        return self._polarity

    @property
    def phase(self):
        return self._phase

    @property
    def msb_first(self):
        return self._bit_order == BitOrder.MSB_FIRST

    @property
    def edges(self):
        """Serial clock edges in a single transfer."""
        return 2 * self._word_width

    @property
    def period(self):
        """Serial clock period in system clock cycles."""
        return 2 * self._prescale

    @property
    def transfer_ticks(self):
        """System clock cycles from acceptance to completion."""
        return self.edges * self._prescale

    @property
    def first_bit(self):
        return self._word_width - 1 if self.msb_first else 0

    @property
    def last_bit(self):
        return 0 if self.msb_first else self._word_width - 1

    def next_bit(self, index):
        """Bit index after index, clamped at the last bit."""
        if index == self.last_bit:
            return index
        return index - 1 if self.msb_first else index + 1

    def sck_frequency(self, sys_hz):
        """Serial clock frequency in Hz for a system clock of sys_hz."""
        return sys_hz / self.period

    def __eq__(self, other):
        if not isinstance(other, MasterConfig):
            return NotImplemented
        return self._key() == other._key()

    def __hash__(self):
        return hash(self._key())

    def _key(self):
        return (self._word_width, self._mode, self._bit_order, self._prescale)

    def __repr__(self):
        order = "msb" if self.msb_first else "lsb"
        return (
            f"MasterConfig(width={self._word_width}, mode={self._mode}, "
            f"{order} first, prescale={self._prescale})"
        )
