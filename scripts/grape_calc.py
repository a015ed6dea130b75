#!/usr/bin/env python3
"""
ぶどう逆算 コマンドライン版

使い方:
  python3 scripts/grape_calc.py --model マイジャグラーV --games 3000 --big 10 --reg 10 --diff 0
  python3 scripts/grape_calc.py --image screenshot.png --save
  python3 scripts/grape_calc.py --history
"""
import argparse
import json
import sys
from pathlib import Path

PROJECT_ROOT = Path(__file__).resolve().parent.parent
sys.path.insert(0, str(PROJECT_ROOT))

from config.machines import DEFAULT_MACHINE, list_machine_keys
from analysis import session_store
from analysis.session_controller import (
    calculate, empty_state, history_row, read_screenshot, update_inputs, MSG_NOT_FOUND,
)
from scrapers.ocr_reader import OcrError, recognize
from scrapers.ocr_text_parser import extract


def print_results(state: dict, results: list):
    """打法別の結果を表示"""
    print("=" * 50)
    print(f"🍇 ぶどう逆算: {state['model_key']}")
    print("=" * 50)
    print(f"  総回転数: {state.get('games') or '-'}  BIG: {state.get('big') or '-'}"
          f"  REG: {state.get('reg') or '-'}  差枚: {state.get('diff') or '-'}")
    print()
    for r in results:
        mark = '' if r['reconciled'] else '  ⚠ 収支が合わない（0に丸め）'
        print(f"  {r['label']:<16} 確率 {r['prob_text']:>10}  回数 {r['count_text']:>7}{mark}")
    print()


def print_history(rows: list):
    if not rows:
        print("履歴なし")
        return
    print(f"{'機種':<14} {'適当打ち':>10} {'チェリー90%':>10} {'チェリー100%':>10} {'完全攻略':>10}")
    for row in rows:
        print(f"{row.get('model_key', ''):<14} {row.get('prob_random', '-'):>10} {row.get('prob_c90', '-'):>10}"
              f" {row.get('prob_c100', '-'):>10} {row.get('prob_full', '-'):>10}")


def main(argv=None):
    parser = argparse.ArgumentParser(description='ジャグラーぶどう逆算')
    parser.add_argument('--model', default=DEFAULT_MACHINE, choices=list_machine_keys(), help='機種')
    parser.add_argument('--games', help='総回転数')
    parser.add_argument('--big', help='BIG回数')
    parser.add_argument('--reg', help='REG回数')
    parser.add_argument('--diff', help='差枚（±）')
    parser.add_argument('--image', help='スクショ画像（OCRで読み取り）')
    parser.add_argument('--text', help='OCR済みテキストファイル（抽出のみ）')
    parser.add_argument('--save', action='store_true', help='結果を履歴に追加')
    parser.add_argument('--history', action='store_true', help='履歴を表示して終了')
    parser.add_argument('--json', action='store_true', help='JSONで出力')
    args = parser.parse_args(argv)

    if args.history:
        print_history(session_store.load_history())
        return 0

    state = update_inputs(empty_state(args.model), {
        'games': args.games, 'big': args.big, 'reg': args.reg, 'diff': args.diff,
    })

    if args.image or args.text:
        if args.image:
            ocr = recognize
            source = args.image
        else:
            ocr = lambda path, logger=None: Path(path).read_text(encoding='utf-8')
            source = args.text
        try:
            outcome = read_screenshot(state, source, ocr, extract, filename=Path(source).name)
        except (OcrError, OSError) as e:
            print(f"❌ OCRエラー: {e}")
            return 1
        if not args.json:
            for line in outcome['log']:
                print(line)
        if not outcome['found']:
            print(MSG_NOT_FOUND)
            return 2
        state = outcome['state']

    results = calculate(state)

    if args.json:
        print(json.dumps({
            'state': state,
            'results': [dict(r, grape_prob=None if r['prob_text'] == '-' else r['grape_prob']) for r in results],
        }, ensure_ascii=False, indent=2))
    else:
        print_results(state, results)

    if args.save:
        session_store.save_state(state)
        session_store.add_history(history_row(state, results))
        if not args.json:
            print("✅ 履歴に追加しました")
    return 0


if __name__ == '__main__':
    sys.exit(main())
