import asyncio
from datetime import datetime, timezone
import time

import hydra
from loguru import logger
from omegaconf import DictConfig, OmegaConf

from teamevo.analysis import analyze_team
from teamevo.data.loaders import load_game_data
from teamevo.evolution.engine import EngineConfig
from teamevo.exceptions import TeamEvoError
from teamevo.runner import GenerationOptions, PoolConfig, generate_team
from teamevo.utils.logger_setup import setup_logger


async def run_generation(cfg: DictConfig) -> None:
    start_time = time.time()

    logger.info("=" * 80)
    logger.info("teamevo team generation")
    logger.info("=" * 80)
    logger.info("Mode: {} | algorithm: {}", cfg.generation.mode, cfg.generation.algorithm)
    logger.info("Start time: {}", datetime.now(timezone.utc).isoformat())

    try:
        logger.info("Step 1/3: Loading game data from {}...", cfg.data_dir)
        data = load_game_data(hydra.utils.to_absolute_path(cfg.data_dir))
        logger.info("Step 1/3: Complete")

        logger.info("Step 2/3: Running genetic search...")
        options = GenerationOptions.from_request(OmegaConf.to_container(cfg.generation, resolve=True))
        engine_config = EngineConfig(**OmegaConf.to_container(cfg.engine, resolve=True))
        pool_config = PoolConfig(**OmegaConf.to_container(cfg.pool, resolve=True))
        result = await generate_team(
            options,
            data,
            config=engine_config,
            pool_config=pool_config,
            timeout=cfg.timeout,
        )
        logger.info(
            "Step 2/3: Team {} | fitness={:.4f} | generations={} | converged={}",
            result.team,
            result.fitness,
            result.generations_run,
            result.converged,
        )
        for name, value in sorted(result.fitness_components.items(), key=lambda kv: -kv[1]):
            logger.info("  {:<20} {:.4f}", name, value)
        if result.repairs:
            logger.info("  Repairs: {}", result.repairs)

        if cfg.analyze:
            logger.info("Step 3/3: Analyzing team...")
            analysis = analyze_team(data, result.team, options.mode, options.algorithm)
            for entry in analysis.core_breakers.entries:
                logger.info(
                    "  Core breaker #{} {} ({} answers, {})",
                    entry.rank,
                    entry.pokemon,
                    entry.team_answers,
                    entry.severity.value,
                )
            for key, stats in analysis.shield_scenarios.items():
                logger.info(
                    "  Shields {}: {}/{} threats covered",
                    key,
                    stats.covered_threats,
                    stats.evaluated_threats,
                )
            for contribution in analysis.contributions:
                logger.info("  {}: {}", contribution.pokemon, contribution.rationale)
            for weakness in analysis.weaknesses[:5]:
                logger.info("  Unbeaten: {} (weight {:.1f})", weakness.pokemon, weakness.weight)
        else:
            logger.info("Step 3/3: Analysis skipped")

    except TeamEvoError as e:
        logger.error("Team generation failed: {}", e)
        raise
    finally:
        duration = time.time() - start_time
        logger.info("Total duration: {:.2f} seconds", duration)
        logger.info("End time: {}", datetime.now(timezone.utc).isoformat())
        logger.info("=" * 80)


@hydra.main(version_base=None, config_path="config", config_name="config")
def main(cfg: DictConfig) -> None:
    """Main entrypoint with Hydra configuration management."""
    log_file_path = setup_logger(
        log_dir=cfg.logging.log_dir,
        level=cfg.logging.level,
        rotation=cfg.logging.rotation,
        retention=cfg.logging.retention,
        repairs_file=cfg.logging.repairs_file,
    )
    logger.info(
        "Working directory: {}.",
        hydra.core.hydra_config.HydraConfig.get().runtime.output_dir,
    )
    logger.info("Log file: {}", log_file_path)
    asyncio.run(run_generation(cfg))


if __name__ == "__main__":
    main()
