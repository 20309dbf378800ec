import argparse
import json
from pathlib import Path
from typing import List, Optional

from . import __version__
from .board import JobBoardClient
from .config import ConfigError, Settings, describe_environment
from .database import init_database, get_session
from .env import load_env
from .logger import get_logger
from .normalize import TitleNormalizer
from .pipeline import AnalysisError, run_analysis
from .storage import JobRecordStore

logger = get_logger()


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="jobrank",
        description="Estimate search positions of an employer's active vacancies",
    )
    parser.add_argument("--version", action="version", version=__version__)
    parser.add_argument("--jobId", dest="job_id", required=True, help="Analysis job record to update")
    parser.add_argument("--companyId", dest="company_id", required=True, help="Employer id on the job board")
    parser.add_argument("--output", help="Also write the annotated postings to this JSON file")
    return parser


def write_output(path: Path, vacancies: list) -> None:
    path.parent.mkdir(parents=True, exist_ok=True)
    with path.open("w", encoding="utf-8") as f:
        json.dump({"vacancies": vacancies}, f, indent=2, ensure_ascii=False)


def main(argv: Optional[List[str]] = None) -> None:
    parser = build_parser()
    args = parser.parse_args(argv)
    args.job_id = args.job_id.strip()
    args.company_id = args.company_id.strip()
    if not args.job_id or not args.company_id:
        parser.error("--jobId and --companyId must not be empty")

    # Load .env if present (GEMINI_API_KEY, DATABASE_URL, etc.)
    load_env()
    logger.debug("Configuration inputs present", **describe_environment())
    try:
        settings = Settings.from_env()
    except ConfigError as e:
        logger.critical(str(e))
        raise SystemExit(1)
    logger.set_level(settings.log_level)

    engine = init_database(settings.database_url)
    session = get_session(engine)
    board = JobBoardClient(user_agent=settings.user_agent, base_url=settings.api_url)
    try:
        normalizer = TitleNormalizer.from_api_key(settings.gemini_api_key, settings.gemini_model)
        postings = run_analysis(
            args.job_id,
            args.company_id,
            board=board,
            normalizer=normalizer,
            store=JobRecordStore(session),
        )
    except AnalysisError:
        raise SystemExit(1)
    finally:
        board.session.close()
        session.close()

    if args.output:
        write_output(Path(args.output), [p.to_dict() for p in postings])
        logger.info("Wrote results", path=args.output)


if __name__ == "__main__":
    main()
