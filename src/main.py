"""Entry point for GridZen.

Configures logging, builds the engine and opens the Arcade window.
"""
import logging
from pathlib import Path

from arcade import run

from gridzen.app.window import ArcadeSoundSink, GridZenWindow
from gridzen.engine import Engine, EngineConfig
from gridzen.logging_setup import setup_logging

ROOT = Path(__file__).resolve().parent.parent

logger = logging.getLogger(__name__)


def main():
    log_file = setup_logging(ROOT / "logs")
    logger.info("Logging to %s", log_file)
    engine = Engine(EngineConfig(save_dir=ROOT / "data"), feedback_sink=ArcadeSoundSink())
    GridZenWindow(engine)
    run()


if __name__ == "__main__":
    main()
