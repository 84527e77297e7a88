from amaranth.build import Attrs, Pins, PinsN, Resource, Subsignal

__all__ = ["SPIMasterResource", "LEDResource"]


def SPIMasterResource(*args, sck, sdo, sdi, cs, number=None, conn=None):
    """
    SPI bus driven by the FPGA.

    I/O signals:
        sck  -- serial clock (output)
        sdo  -- data to the slave, MOSI (output)
        sdi  -- data from the slave, MISO (input)
        cs   -- device select, active low on the pin (output)
    """
    ios = [
        Subsignal("sck", Pins(sck, dir="o", conn=conn, assert_width=1)),
        Subsignal("sdo", Pins(sdo, dir="o", conn=conn, assert_width=1)),
        Subsignal("sdi", Pins(sdi, dir="i", conn=conn, assert_width=1)),
        Subsignal("cs", PinsN(cs, dir="o", conn=conn, assert_width=1)),
        Attrs(IO_STANDARD="SB_LVCMOS"),
    ]

    return Resource.family(*args, number, default_name="spi_master", ios=ios)


def LEDResource(*args, pin, number=None, conn=None, invert=True):
    """Single status LED, by default lit when the pin is low."""
    pins = PinsN if invert else Pins
    return Resource.family(
        *args,
        number,
        default_name="led",
        ios=[
            pins(pin, dir="o", conn=conn, assert_width=1),
            Attrs(IO_STANDARD="SB_LVCMOS"),
        ],
    )
