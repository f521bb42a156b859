#!/usr/bin/env python3

##############################################
#                                            #
#      THINKING FRAMEWORKS COMPARISON        #
#                                            #
##############################################

import argparse
import asyncio
import dataclasses
import os
import signal
from typing import Dict, List, Optional

from dotenv import load_dotenv

from thinking_frameworks.cancellation import CancellationToken
from thinking_frameworks.models import ProgressEvent, RunOptions, StrategyResult
from thinking_frameworks.orchestrator import Orchestrator, StrategyName, UnknownStrategyError
from utils.cli import export_results, format_progress, print_comparison, read_question
from utils.load_config import DEFAULT_CONFIG_PATH, load_config
from utils.logger import get_logger, init_logger

logger = get_logger(__name__)

SAMPLE_QUESTIONS = [
    "What is the hometown of the reigning men's Australian Open champion?",
    "How many tennis balls does Roger have if he starts with 5 and buys 2 cans of 3?",
    "What is the population of the capital of France?",
    "Who painted the Mona Lisa and in what year was it completed?",
]


def parse_args(argv: Optional[List[str]] = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(description="Compare CoT, ReAct, ReWOO and Plan-Execute on one question.")
    parser.add_argument("question", nargs="?", help="Ask one question and exit instead of starting the prompt loop.")
    parser.add_argument("--config", default=str(DEFAULT_CONFIG_PATH), help="Path to config.toml.")
    parser.add_argument("--frameworks", help="Comma-separated strategies: cot,react,rewoo,plan-execute.")
    parser.add_argument("--model", help="Model name passed to the LLM client.")
    parser.add_argument("--samples", type=int, help="Number of CoT self-consistency samples.")
    parser.add_argument("--samples-list", action="store_true", help="Print sample questions and exit.")
    parser.add_argument("--export", metavar="PATH", help="Write the last comparison to PATH as JSON.")
    return parser.parse_args(argv)


def parse_frameworks(value: Optional[str]) -> Optional[List[StrategyName]]:
    if not value:
        return None
    return [StrategyName.parse(name) for name in value.split(",") if name.strip()]


async def ask(orchestrator: Orchestrator, question: str, credential: Optional[str], model: str) -> Dict[str, StrategyResult]:
    """Run every configured strategy; Ctrl-C cancels the shared token instead of killing the loop."""
    token = CancellationToken()
    options = RunOptions(credential=credential, model=model, cancellation=token)

    def on_progress(name: StrategyName, event: ProgressEvent) -> None:
        print(format_progress(name.display_name, event), flush=True)

    loop = asyncio.get_running_loop()
    try:
        loop.add_signal_handler(signal.SIGINT, token.cancel)
        handler_installed = True
    except (NotImplementedError, RuntimeError):
        handler_installed = False

    try:
        results = await orchestrator.run(question, options, on_progress)
    finally:
        if handler_installed:
            loop.remove_signal_handler(signal.SIGINT)
    return {name.value: result for name, result in results.items()}


def main(argv: Optional[List[str]] = None) -> None:
    args = parse_args(argv)
    if args.samples_list:
        for i, question in enumerate(SAMPLE_QUESTIONS, start=1):
            print(f"{i}. {question}")
        return

    load_dotenv()
    init_logger(args.config)
    config = load_config(args.config)

    try:
        names = parse_frameworks(args.frameworks)
    except UnknownStrategyError as exc:
        raise SystemExit(str(exc)) from exc
    if args.samples is not None:
        config = dataclasses.replace(
            config,
            strategies=dataclasses.replace(
                config.strategies, cot=dataclasses.replace(config.strategies.cot, n_samples=args.samples)
            ),
        )
    model = args.model or config.llm.model
    credential = os.getenv(config.llm.credential_env)
    if not credential:
        logger.warning("credential_missing", env_var=config.llm.credential_env)

    orchestrator = Orchestrator.from_config(config, names=names)
    logger.info("🤖 Ready. Ask a question (bye/quit/exit to leave)…", strategies=[n.value for n in orchestrator.names])

    while True:
        question = None
        try:
            question = args.question or read_question()
            if not question:
                continue

            results = asyncio.run(ask(orchestrator, question, credential, model))
            print_comparison(results, model)
            if args.export:
                path = export_results(args.export, question, model, results)
                logger.info("results_exported", path=str(path))

        except KeyboardInterrupt:
            logger.info("🤖 Bye!")
            break

        except Exception as exc:
            logger.exception("comparison_failed", question=question, error=str(exc))

        if args.question:
            break


if __name__ == "__main__":
    main()
