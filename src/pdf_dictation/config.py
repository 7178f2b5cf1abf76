"""
Configuration and constants for the PDF dictation pipeline.

This module provides:
- Global configuration settings
- Line reconstruction and chrome filtering parameters
- Decoder (text layer / OCR fallback) settings
- Speech defaults
"""

import os
from dataclasses import dataclass, field
from typing import Optional, List
import logging

# ============================================================================
# Logging Configuration
# ============================================================================

logging.basicConfig(
    level=logging.INFO,
    format='%(asctime)s - %(name)s - %(levelname)s - %(message)s'
)
logger = logging.getLogger("pdf_dictation")


# ============================================================================
# Processing Configuration
# ============================================================================

@dataclass
class GroupingConfig:
    """Line reconstruction configuration."""
    # Baseline drift still treated as the same line; generous so that
    # superscript glyphs stay on their base line
    line_tolerance: float = 3.5
    merge_superscripts: bool = True


@dataclass
class RepairConfig:
    """Extraction artifact repair configuration."""
    enabled: bool = True
    # Missing-minus reinsertion may misfire on legitimate juxtaposed numbers
    minus_heuristics: bool = True


@dataclass
class ChromeConfig:
    """Running header/footer removal configuration."""
    frequency_ratio: float = 0.5
    min_repeats: int = 2
    use_junk_patterns: bool = True


@dataclass
class DecoderConfig:
    """PDF decoding configuration."""
    # Run Tesseract on pages without a text layer
    ocr_fallback: bool = False
    ocr_dpi: int = 300
    tesseract_lang: str = "eng"
    tesseract_config: str = "--oem 3 --psm 6"
    max_pages: Optional[int] = None  # None = decode all pages


@dataclass
class SpeechConfig:
    """Speech output configuration."""
    math_mode: bool = True
    voice: Optional[str] = None  # None = engine default
    volume: float = 1.0
    preferred_lang_prefix: str = "en-"


@dataclass
class ExportConfig:
    """Export configuration."""
    include_page_badges: bool = True
    docx_template: Optional[str] = None
    output_formats: List[str] = field(default_factory=lambda: [
        "json", "text", "markdown"
    ])


@dataclass
class PipelineConfig:
    """Main pipeline configuration."""
    grouping: GroupingConfig = field(default_factory=GroupingConfig)
    repair: RepairConfig = field(default_factory=RepairConfig)
    chrome: ChromeConfig = field(default_factory=ChromeConfig)
    decoder: DecoderConfig = field(default_factory=DecoderConfig)
    speech: SpeechConfig = field(default_factory=SpeechConfig)
    export: ExportConfig = field(default_factory=ExportConfig)

    debug_mode: bool = False


# ============================================================================
# Default Configuration Instance
# ============================================================================

def _env_flag(name: str) -> Optional[bool]:
    value = os.environ.get(name, "").strip().lower()
    if value in ("1", "true", "yes", "on"):
        return True
    if value in ("0", "false", "no", "off"):
        return False
    return None


def get_config() -> PipelineConfig:
    """Get the default pipeline configuration with environment overrides."""
    config = PipelineConfig()

    math_mode = _env_flag("DICTATION_MATH_MODE")
    if math_mode is not None:
        config.speech.math_mode = math_mode

    ocr_fallback = _env_flag("DICTATION_OCR_FALLBACK")
    if ocr_fallback is not None:
        config.decoder.ocr_fallback = ocr_fallback

    heuristics = _env_flag("DICTATION_MINUS_HEURISTICS")
    if heuristics is not None:
        config.repair.minus_heuristics = heuristics

    if _env_flag("DICTATION_DEBUG"):
        config.debug_mode = True

    voice = os.environ.get("DICTATION_VOICE")
    if voice:
        config.speech.voice = voice

    volume = os.environ.get("DICTATION_VOLUME")
    if volume:
        try:
            config.speech.volume = min(1.0, max(0.0, float(volume)))
        except ValueError:
            logger.warning(f"Ignoring invalid DICTATION_VOLUME: {volume!r}")

    return config


# ============================================================================
# JSON Schema Version
# ============================================================================

JSON_SCHEMA_VERSION = "1.0"
