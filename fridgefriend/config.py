"""TOML configuration loader for FridgeFriend."""

from __future__ import annotations

import os
import sys
from dataclasses import dataclass, field
from pathlib import Path

from .retry import DEFAULT_FOOD_CLASSES

if sys.version_info >= (3, 11):
    import tomllib
else:
    try:
        import tomli as tomllib
    except ImportError:
        tomllib = None  # type: ignore[assignment]


@dataclass
class CameraConfig:
    indices: list[int] = field(default_factory=lambda: [0])
    save_dir: str = "/tmp/fridgefriend"


@dataclass
class YOLODetectorConfig:
    model_path: str = "yolov8n.pt"


@dataclass
class AIHatDetectorConfig:
    model_path: str = "/usr/share/hailo-models/yolov8s.hef"


@dataclass
class DetectorConfig:
    backend: str = "yolo"
    max_retries: int = 5
    backoff_ms: int = 500
    acceptance_confidence: float = 0.5
    food_classes: list[str] = field(
        default_factory=lambda: sorted(DEFAULT_FOOD_CLASSES)
    )
    yolo: YOLODetectorConfig = field(default_factory=YOLODetectorConfig)
    ai_hat: AIHatDetectorConfig = field(default_factory=AIHatDetectorConfig)


@dataclass
class MatcherConfig:
    similarity_threshold: float = 0.7
    min_confidence: float = 0.3
    default_shelf_life_days: int = 7


@dataclass
class SpoilageConfig:
    brown_min_red: int = 100
    brown_max_green: int = 100
    brown_max_blue: int = 100
    dark_max: int = 50
    spoiled_above: float = 30.0
    starting_above: float = 15.0
    slight_above: float = 5.0


@dataclass
class ExpiryConfig:
    label_fallback_days: int = 30
    expiring_soon_days: int = 7


@dataclass
class TesseractOCRConfig:
    cmd: str = ""
    lang: str = "eng"


@dataclass
class ClaudeOCRConfig:
    api_key: str = ""
    model: str = "claude-sonnet-4-5-20250929"


@dataclass
class GeminiOCRConfig:
    api_key: str = ""
    model: str = "gemini-2.0-flash"


@dataclass
class OCRConfig:
    backend: str = "tesseract"
    tesseract: TesseractOCRConfig = field(default_factory=TesseractOCRConfig)
    claude: ClaudeOCRConfig = field(default_factory=ClaudeOCRConfig)
    gemini: GeminiOCRConfig = field(default_factory=GeminiOCRConfig)


@dataclass
class DatabaseConfig:
    path: str = "~/.config/fridgefriend/inventory.db"
    owner: str = ""


@dataclass
class WatchConfig:
    alert_schedule: str = "0 9 * * *"
    alert_days: int = 7


@dataclass
class FridgeConfig:
    camera: CameraConfig = field(default_factory=CameraConfig)
    detector: DetectorConfig = field(default_factory=DetectorConfig)
    matcher: MatcherConfig = field(default_factory=MatcherConfig)
    spoilage: SpoilageConfig = field(default_factory=SpoilageConfig)
    expiry: ExpiryConfig = field(default_factory=ExpiryConfig)
    ocr: OCRConfig = field(default_factory=OCRConfig)
    database: DatabaseConfig = field(default_factory=DatabaseConfig)
    watch: WatchConfig = field(default_factory=WatchConfig)


def load_config(path: str | Path | None = None) -> FridgeConfig:
    """Load configuration from a TOML file.

    Falls back to defaults if no path is given or the file doesn't exist.
    API keys can be overridden via environment variables.
    """
    raw: dict = {}

    if path is not None:
        p = Path(path)
        if p.exists():
            if tomllib is None:
                raise ImportError(
                    "tomli is required on Python < 3.11: pip install tomli"
                )
            with open(p, "rb") as f:
                raw = tomllib.load(f)

    cam = raw.get("camera", {})
    det = raw.get("detector", {})
    mat = raw.get("matcher", {})
    spo = raw.get("spoilage", {})
    exp = raw.get("expiry", {})
    ocr = raw.get("ocr", {})
    dbc = raw.get("database", {})
    wat = raw.get("watch", {})

    tesseract_cfg = ocr.get("tesseract", {})
    claude_cfg = ocr.get("claude", {})
    gemini_cfg = ocr.get("gemini", {})

    # Resolve API keys: config file → environment variable
    claude_api_key = claude_cfg.get("api_key", "") or os.environ.get(
        "ANTHROPIC_API_KEY", ""
    )
    gemini_api_key = gemini_cfg.get("api_key", "") or os.environ.get(
        "GEMINI_API_KEY", ""
    )

    defaults = FridgeConfig()

    return FridgeConfig(
        camera=CameraConfig(
            indices=cam.get("indices", [0]),
            save_dir=cam.get("save_dir", defaults.camera.save_dir),
        ),
        detector=DetectorConfig(
            backend=det.get("backend", "yolo"),
            max_retries=det.get("max_retries", 5),
            backoff_ms=det.get("backoff_ms", 500),
            acceptance_confidence=det.get("acceptance_confidence", 0.5),
            food_classes=det.get("food_classes", defaults.detector.food_classes),
            yolo=YOLODetectorConfig(
                model_path=det.get("yolo", {}).get(
                    "model_path", defaults.detector.yolo.model_path
                ),
            ),
            ai_hat=AIHatDetectorConfig(
                model_path=det.get("ai_hat", {}).get(
                    "model_path", defaults.detector.ai_hat.model_path
                ),
            ),
        ),
        matcher=MatcherConfig(
            similarity_threshold=mat.get("similarity_threshold", 0.7),
            min_confidence=mat.get("min_confidence", 0.3),
            default_shelf_life_days=mat.get("default_shelf_life_days", 7),
        ),
        spoilage=SpoilageConfig(**{
            name: spo.get(name, value)
            for name, value in vars(defaults.spoilage).items()
        }),
        expiry=ExpiryConfig(
            label_fallback_days=exp.get("label_fallback_days", 30),
            expiring_soon_days=exp.get("expiring_soon_days", 7),
        ),
        ocr=OCRConfig(
            backend=ocr.get("backend", "tesseract"),
            tesseract=TesseractOCRConfig(
                cmd=tesseract_cfg.get("cmd", ""),
                lang=tesseract_cfg.get("lang", "eng"),
            ),
            claude=ClaudeOCRConfig(
                api_key=claude_api_key,
                model=claude_cfg.get("model", defaults.ocr.claude.model),
            ),
            gemini=GeminiOCRConfig(
                api_key=gemini_api_key,
                model=gemini_cfg.get("model", defaults.ocr.gemini.model),
            ),
        ),
        database=DatabaseConfig(
            path=dbc.get("path", defaults.database.path),
            owner=dbc.get("owner", ""),
        ),
        watch=WatchConfig(
            alert_schedule=wat.get("alert_schedule", "0 9 * * *"),
            alert_days=wat.get("alert_days", 7),
        ),
    )
