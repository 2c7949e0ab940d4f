"""Main Application Entry Point

Runs capture test scenarios from the command line against the simulated
capture source and prints a verdict per scenario.

Usage:
    python -m framecheck.main                       # every scenario
    python -m framecheck.main frame_rate_sweep audio_only

Exit status is 1 when any scenario fails or cannot run.
"""

import asyncio
import logging
import sys
from pathlib import Path
from typing import List, Optional

from framecheck.capture.simulated import SimulatedCaptureSource
from framecheck.config.config_loader import config
from framecheck.engine.orchestrator import TestOrchestrator
from framecheck.engine.scenarios import scenario_names
from framecheck.models.enums import Verdict


logger = logging.getLogger(__name__)


def configure_logging() -> None:
    """Configure root logging from the logging section of the configuration."""
    handlers = [logging.StreamHandler(sys.stdout)]
    log_file = config.get('logging.file')
    if log_file:
        Path(log_file).parent.mkdir(parents=True, exist_ok=True)
        handlers.append(logging.FileHandler(log_file))
    
    logging.basicConfig(
        level=getattr(logging, str(config.get('logging.level', 'INFO')).upper(), logging.INFO),
        format='%(asctime)s - %(name)s - %(levelname)s - %(message)s',
        handlers=handlers
    )


async def run_scenarios(names: List[str], orchestrator: Optional[TestOrchestrator] = None) -> int:
    """Run the named scenarios one after another.
    
    Args:
        names: Catalog scenario names
        orchestrator: Orchestrator to use (defaults to one driving a SimulatedCaptureSource)
    
    Returns:
        Process exit status: 0 when every scenario ran and none failed, 1 otherwise
    """
    orchestrator = orchestrator or TestOrchestrator(SimulatedCaptureSource())
    
    targets = await orchestrator.load_targets()
    if not targets:
        logger.error("No capture targets available")
        return 1
    logger.info(f"Capturing {orchestrator.selected_target.label}")
    
    status = 0
    for name in names:
        result = await orchestrator.run(name)
        if result is None:
            print(f"{name}: ERROR ({orchestrator.status_text or 'not run'})")
            status = 1
            continue
        print(f"{name}: {result.verdict.value.upper()}")
        if result.verdict == Verdict.FAIL:
            status = 1
    return status


def main(argv: Optional[List[str]] = None) -> int:
    """Main entry point for the command line."""
    configure_logging()
    config.validate()
    
    names = list(sys.argv[1:] if argv is None else argv) or scenario_names()
    unknown = [name for name in names if name not in scenario_names()]
    if unknown:
        logger.error(f"Unknown scenario(s): {', '.join(unknown)}")
        print(f"Available scenarios: {', '.join(scenario_names())}")
        return 1
    
    try:
        return asyncio.run(run_scenarios(names))
    except KeyboardInterrupt:
        logger.info("Interrupted by user")
        return 1


if __name__ == "__main__":
    sys.exit(main())
