# services/logging_service.py

"""
Menyediakan layanan logging terpusat untuk inference engine.

Modul ini mengkonfigurasi logger standar menggunakan library logging
bawaan Python dan menyediakan LoggingService untuk:
- Log setiap sesi inferensi
- Track statistik penggunaan rule
- Generate statistik sistem

Penggunaan RotatingFileHandler memastikan file log tidak membengkak
tanpa batas.
"""

import logging
from logging.handlers import RotatingFileHandler
import os
from typing import Dict, List, Any, Mapping, Optional
from datetime import datetime

from core.models import InferenceResult, RuleSet

LOG_DIR = "logs"
LOG_FILE = os.path.join(LOG_DIR, "inference.log")


def setup_logger(
    name: str = 'InferenceLogger',
    log_file: str = LOG_FILE,
    level: int = logging.INFO
) -> logging.Logger:
    """
    Mengkonfigurasi dan mengembalikan instance logger.

    Mencegah penambahan handler duplikat jika fungsi ini dipanggil
    beberapa kali.

    Args:
        name (str): Nama logger.
        log_file (str): Path ke file log.
        level (int): Level logging (misalnya, logging.INFO, logging.DEBUG).

    Returns:
        logging.Logger: Instance logger yang sudah dikonfigurasi.
    """
    # Pastikan direktori log ada
    log_dir = os.path.dirname(log_file)
    if log_dir:
        os.makedirs(log_dir, exist_ok=True)

    logger = logging.getLogger(name)

    # Cek untuk menghindari penambahan handler berulang kali
    if logger.handlers:
        return logger

    logger.setLevel(level)

    formatter = logging.Formatter(
        '%(asctime)s - %(levelname)s - %(message)s',
        datefmt='%Y-%m-%d %H:%M:%S'
    )

    # 5MB per file, dengan backup 5 file lama.
    handler = RotatingFileHandler(log_file, maxBytes=5*1024*1024, backupCount=5, encoding='utf-8')
    handler.setFormatter(formatter)
    logger.addHandler(handler)

    return logger


def setup_from_config(config: Dict[str, Any], name: str = 'InferenceLogger') -> logging.Logger:
    """Buat logger dari bagian `logging` pada konfigurasi."""
    log_cfg = config.get("logging", {})
    log_file = os.path.join(log_cfg.get("log_dir", LOG_DIR), log_cfg.get("log_file", "inference.log"))
    level = logging.getLevelName(str(log_cfg.get("level", "INFO")).upper())
    if not isinstance(level, int):
        level = logging.INFO
    return setup_logger(name, log_file, level)


class LoggingService:
    """Service untuk logging dan statistik inferensi.

    Menyediakan fungsi untuk:
    - Log sesi inferensi
    - Track rule usage (in-memory statistics)
    - Generate statistics
    """

    def __init__(
        self,
        rule_set: Optional[RuleSet] = None,
        logger: Optional[logging.Logger] = None,
        logger_name: str = 'InferenceLogger',
    ):
        """Initialize LoggingService.

        Args:
            rule_set: Rule set aktif, untuk memperkaya statistik (optional)
            logger: Logger yang sudah dikonfigurasi (optional)
            logger_name: Nama logger jika logger tidak diberikan
        """
        self.rule_set = rule_set
        self.logger = logger or setup_logger(logger_name)
        self._rule_usage: Dict[str, int] = {}  # In-memory tracking
        self._sessions = 0

    def log_inference(
        self,
        user_inputs: Mapping[str, Optional[str]],
        result: InferenceResult,
    ) -> None:
        """Log satu sesi inferensi dan update rule usage statistics.

        Args:
            user_inputs: Jawaban user (fact key -> label)
            result: Hasil dari InferenceSession.run_inference
        """
        self._sessions += 1
        top = result.top
        conclusion = top.code if top else 'None'
        cf = top.cf if top else 0.0

        self.logger.info(
            f"Inference: {len(user_inputs)} answers → "
            f"{conclusion} (CF: {cf:.2f}, passes: {result.passes})"
        )

        fired = [event.rule_id for event in result.trace]
        if fired:
            self.logger.info(f"Fired rules: {', '.join(fired)}")
            for rule_id in fired:
                self._rule_usage[rule_id] = self._rule_usage.get(rule_id, 0) + 1

        if result.diagnoses:
            ranked = ", ".join(f"{d.code}={d.cf:.3f}" for d in result.diagnoses)
            self.logger.info(f"Diagnoses: {ranked}")

    def log_error(self, error_msg: str, exception: Optional[Exception] = None) -> None:
        """Log error message.

        Args:
            error_msg: Error message
            exception: Exception object (optional)
        """
        if exception:
            self.logger.error(f"{error_msg}: {str(exception)}", exc_info=True)
        else:
            self.logger.error(error_msg)

    def get_most_used_rules(self, top_n: int = 5) -> List[Dict[str, Any]]:
        """Dapatkan rules yang paling sering menembak.

        Args:
            top_n: Jumlah top rules

        Returns:
            List dictionary rule usage dengan details
        """
        sorted_usage = sorted(
            self._rule_usage.items(),
            key=lambda x: x[1],
            reverse=True
        )[:top_n]

        enriched = []
        for rule_id, count in sorted_usage:
            rule = self.rule_set.get_rule(rule_id) if self.rule_set else None
            enriched.append({
                "rule_id": rule_id,
                "usage_count": count,
                "conclusion": rule.THEN if rule else None,
                "cf": rule.CF if rule else None,
                "premises_count": len(rule.IF) if rule else 0,
            })
        return enriched

    def get_statistics(self) -> Dict[str, Any]:
        """Dapatkan statistik penggunaan sistem.

        Returns:
            Dictionary berisi berbagai statistik
        """
        handler_files = [
            h.baseFilename for h in self.logger.handlers
            if isinstance(h, RotatingFileHandler)
        ]
        log_file = handler_files[0] if handler_files else None
        return {
            "total_rules": len(self.rule_set.rules) if self.rule_set else 0,
            "total_sessions": self._sessions,
            "most_used_rules": self.get_most_used_rules(top_n=10),
            "log_file": log_file,
            "log_file_size": os.path.getsize(log_file) if log_file and os.path.exists(log_file) else 0,
            "timestamp": datetime.now().isoformat(),
        }

    def clear_statistics(self) -> None:
        """Reset rule usage statistics."""
        self._rule_usage = {}
        self._sessions = 0
        self.logger.warning("Rule usage statistics cleared!")
