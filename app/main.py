"""Entry point: jalankan satu konsultasi dari file jawaban JSON.

Usage:
    python app/main.py answers.json
    python app/main.py answers.json --rules https://example.org/rules.json --explain
"""

import argparse
import json
import sys
from pathlib import Path
from typing import List, Optional

# Tambahkan app/ ke path agar bisa dijalankan langsung
sys.path.insert(0, str(Path(__file__).parent))

from core.errors import InferenceError
from core.explanation import ExplanationFacility
from core.session import InferenceSession
from database.database_manager import DatabaseManager, load_rules
from services.config import load_config
from services.logging_service import LoggingService, setup_from_config


def main(argv: Optional[List[str]] = None) -> int:
    parser = argparse.ArgumentParser(description="Certainty Factor inference")
    parser.add_argument("answers", help="File JSON berisi {fact_key: label}")
    parser.add_argument("--rules", help="Path atau URL dokumen rules")
    parser.add_argument("--config", help="Path ke app.yaml")
    parser.add_argument("--explain", action="store_true", help="Tampilkan penjelasan HOW")
    args = parser.parse_args(argv)

    config = load_config(args.config)
    logging_service = LoggingService(logger=setup_from_config(config))

    try:
        if args.rules:
            rule_set = load_rules(args.rules, timeout=config["database"]["timeout"])
        else:
            db = DatabaseManager.from_config(config, base_dir=Path(__file__).parent)
            rule_set = db.load_rule_set(config["database"]["rules_file"])
        with open(args.answers, "r", encoding="utf-8") as f:
            answers = json.load(f)

        session = InferenceSession.from_config(rule_set, config)
        result = session.run_inference(answers)
    except (InferenceError, OSError, json.JSONDecodeError) as e:
        logging_service.log_error("Inference failed", e)
        print(f"Error: {e}", file=sys.stderr)
        return 1

    logging_service.rule_set = rule_set
    logging_service.log_inference(answers, result)

    if not result.diagnoses:
        print("Tidak ada diagnosis yang didukung oleh jawaban ini.")
    for idx, diagnosis in enumerate(result.diagnoses, 1):
        print(f"{idx}. {diagnosis.code}  CF={diagnosis.cf:.6f} ({diagnosis.confidence_percent}%)")

    if args.explain and result.top:
        explanation = ExplanationFacility.from_trace(result.trace, rule_set)
        print()
        print(explanation.explain_how(result.top.code, result.facts))
    return 0


if __name__ == "__main__":
    sys.exit(main())
