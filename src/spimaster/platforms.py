import logging
import os
import platform as pltf
import subprocess

from amaranth.vendor import LatticeICE40Platform

from .config import BitOrder, MasterConfig
from .constants import MODES, PRESCALE, SYNC_CLOCK_FREQUENCY, WORD_SIZES
from .resources import LEDResource, SPIMasterResource

logger = logging.getLogger(__name__)


class Firestarter(LatticeICE40Platform):
    """Kicad board: https://github.com/hstarmans/firestarter/"""

    device = "iCE40UP5K"
    package = "SG48"
    default_clk = "SB_HFOSC"
    hfosc_div = 1  # 24 MHz

    resources = [
        LEDResource(0, pin="39"),
        SPIMasterResource(
            0,
            sck="19",
            sdo="18",
            sdi="13",
            cs="25",
        ),
    ]
    connectors = []

    def build(self, *args, **kwargs):
        search_command = "where" if pltf.system() == "Windows" else "which"
        base = f"{search_command} yowasp-"
        os.environ["YOSYS"] = subprocess.getoutput(base + "yosys")
        os.environ["NEXTPNR_ICE40"] = subprocess.getoutput(base + "nextpnr-ice40")
        os.environ["ICEPACK"] = subprocess.getoutput(base + "icepack")
        return super().build(*args, **kwargs)


def main(argv=None):
    from argparse import ArgumentDefaultsHelpFormatter, ArgumentParser

    from .core import SPIMaster
    from .log_setup import configure_logging

    parser = ArgumentParser(
        formatter_class=ArgumentDefaultsHelpFormatter,
        description="Build the SPI master for the Firestarter board",
    )
    parser.add_argument("--width", type=int, choices=WORD_SIZES, default=8)
    parser.add_argument("--mode", type=int, choices=MODES, default=0)
    parser.add_argument("--lsb-first", action="store_true", help="Shift the LSB first")
    parser.add_argument("--prescale", type=int, default=PRESCALE["default"])
    parser.add_argument("--build-dir", default="build")
    parser.add_argument("--verbose", "-v", action="store_true", help="Enable debugging output")
    args = parser.parse_args(argv)

    configure_logging(logging.DEBUG if args.verbose else logging.INFO)

    try:
        config = MasterConfig(
            word_width=args.width,
            mode=args.mode,
            bit_order=BitOrder.LSB_FIRST if args.lsb_first else BitOrder.MSB_FIRST,
            prescale=args.prescale,
        )
    except ValueError as e:
        parser.error(str(e))

    logger.info(
        "Building %r, bus clock %.3f MHz",
        config,
        config.sck_frequency(SYNC_CLOCK_FREQUENCY) / 1e6,
    )
    Firestarter().build(
        SPIMaster(config),
        name="spimaster",
        build_dir=args.build_dir,
        do_program=False,
        verbose=args.verbose,
    )
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
