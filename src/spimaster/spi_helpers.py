from amaranth.lib.io import Buffer


def connect_spi_master(m, board_spi, bus):
    """Connect the pins of an SPI master resource to an SPIBus.

    Parameters:
        m          -- Amaranth module
        board_spi  -- Requested resource (with .sck/.sdo/.sdi/.cs), requested with dir="-"
        bus        -- SPIBus of the master

    The cs pin is declared active-low (PinsN), the buffer takes the
    active-high level. The input is not synchronized; it is sampled on the
    master's own strobes, at least one cycle after the slave saw the edge.
    """

    # Wrap I/O pins with direction-aware buffers
    sck = Buffer("o", board_spi.sck)
    sdo = Buffer("o", board_spi.sdo)
    sdi = Buffer("i", board_spi.sdi)
    cs = Buffer("o", board_spi.cs)

    # Register buffers as submodules
    m.submodules += [sck, sdo, sdi, cs]

    m.d.comb += [
        sck.o.eq(bus.sck),
        sdo.o.eq(bus.sdo),
        bus.sdi.eq(sdi.i),
        cs.o.eq(~bus.cs_n),
    ]
