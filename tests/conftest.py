import sys
from pathlib import Path

import pytest
from PIL import Image

# プロジェクトルートをパスに追加
PROJECT_ROOT = Path(__file__).resolve().parent.parent
if str(PROJECT_ROOT) not in sys.path:
    sys.path.insert(0, str(PROJECT_ROOT))

from config.machines import MACHINES, STRATEGIES


@pytest.fixture
def my_juggler():
    """マイジャグラーVのプリセット"""
    return dict(MACHINES['マイジャグラーV'])


@pytest.fixture
def cherry100():
    """チェリー狙い(100%)"""
    return next(s for s in STRATEGIES if s['key'] == 'cherry100')


@pytest.fixture
def sample_image(tmp_path: Path):
    """OCR用のダミー画像"""
    img = Image.new("RGB", (200, 100), color="white")
    img_path = tmp_path / "sample.png"
    img.save(img_path)
    return img_path
