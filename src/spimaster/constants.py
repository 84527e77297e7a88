"""Constants

Symbolic values shared by the configuration, the gateware and the build
entry point. Nothing in here has behaviour.
"""

# supported transfer widths in bits
WORD_SIZES = (8, 16)

# SPI mode codes, bit 1 is the clock polarity, bit 0 the clock phase
MODES = (0, 1, 2, 3)

# half serial clock period in system clock cycles
PRESCALE = dict(
    fastest=1,
    fast=2,
    default=4,
    slow=16,
)

# system clock of the Firestarter board (SB_HFOSC, divider 1)
SYNC_CLOCK_FREQUENCY = 24e6
