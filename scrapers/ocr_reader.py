#!/usr/bin/env python3
"""
スクショ画像のOCR（Tesseract）

画像 → テキストの変換だけを行う。前処理・精度改善はしない。
Tesseract本体と日本語データ（jpn）が必要:
    brew install tesseract tesseract-lang
    apt install tesseract-ocr tesseract-ocr-jpn
"""

import io

from PIL import Image, UnidentifiedImageError
import pytesseract

# OCR言語（日本語 + 英語）
DEFAULT_LANG = 'jpn+eng'


class OcrError(Exception):
    """OCR失敗（画像が読めない・Tesseractが動かない等）"""


def _open_image(image):
    """パス / bytes / ファイルオブジェクト / PIL.Image を PIL.Image にする"""
    if isinstance(image, Image.Image):
        return image
    if isinstance(image, (bytes, bytearray)):
        image = io.BytesIO(image)
    try:
        pil_image = Image.open(image)
        pil_image.load()
    except (OSError, UnidentifiedImageError) as e:
        raise OcrError(f'画像を開けません: {e}') from e
    return pil_image


def recognize(image, lang: str = DEFAULT_LANG, logger=None) -> str:
    """画像からテキストを読み取る

    Args:
        image: 画像ファイルのパス、bytes、ファイルオブジェクト、PIL.Image
        lang: Tesseractの言語指定
        logger: 進捗コールバック logger(status: str, progress: float 0〜1)

    Returns:
        読み取ったテキスト（前後の空白除去済み）

    Raises:
        OcrError: 画像が開けない・Tesseractの実行に失敗した場合
    """
    def report(status, progress):
        if logger:
            logger(status, progress)

    report('loading image', 0.0)
    pil_image = _open_image(image)
    report('recognizing text', 0.5)
    try:
        text = pytesseract.image_to_string(pil_image, lang=lang)
    except (pytesseract.TesseractError, pytesseract.TesseractNotFoundError, RuntimeError) as e:
        raise OcrError(str(e)) from e
    report('recognizing text', 1.0)
    return (text or '').strip()
