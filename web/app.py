#!/usr/bin/env python3
"""
ジャグラーぶどう逆算 - Webアプリ

iPhoneからホールでアクセスして、データカウンターのスクショ or 手入力から
ぶどう確率を打法別に逆算する（JSON API）
"""

import sys
from datetime import datetime, timezone, timedelta
from pathlib import Path

# 日本時間
JST = timezone(timedelta(hours=9))

from flask import Flask, jsonify, request

# プロジェクトルートをパスに追加
PROJECT_ROOT = Path(__file__).parent.parent
sys.path.insert(0, str(PROJECT_ROOT))

from config.machines import MACHINES, STRATEGIES, DEFAULT_MACHINE, list_machine_keys
from analysis import session_store
from analysis.session_controller import (
    calculate, history_row, read_screenshot, reset_inputs, restore_state, update_inputs,
    MSG_NOT_FOUND,
)
from scrapers.ocr_reader import OcrError, recognize
from scrapers.ocr_text_parser import extract

app = Flask(__name__)
# スクショのアップロード上限（10MB）
app.config['MAX_CONTENT_LENGTH'] = 10 * 1024 * 1024
# 保存先（テスト時は差し替える）
app.config['DATA_DIR'] = None

# バージョン確認用
APP_VERSION = '2026-10-17-v1.2-ocr'


# キャッシュ無効化 + CORS対応
@app.after_request
def add_header(response):
    response.headers['Cache-Control'] = 'no-store, no-cache, must-revalidate, max-age=0'
    response.headers['Pragma'] = 'no-cache'
    response.headers['Expires'] = '0'
    response.headers['Access-Control-Allow-Origin'] = '*'
    response.headers['Access-Control-Allow-Methods'] = 'GET, POST, OPTIONS'
    response.headers['Access-Control-Allow-Headers'] = 'Content-Type'
    return response


def _data_dir():
    return app.config.get('DATA_DIR')


def _current_state() -> dict:
    return restore_state(session_store.load_state(_data_dir()))


def _save(state: dict) -> dict:
    session_store.save_state(state, _data_dir())
    return state


def _json_body():
    """リクエストのJSONをdictで返す（なければ空dict、オブジェクト以外はNone）"""
    body = request.get_json(silent=True)
    if body is None:
        return {}
    if not isinstance(body, dict):
        return None
    if not isinstance(body.get('overrides') or {}, dict):
        return None
    return body


def _calc_response(state: dict, overrides: dict = None) -> dict:
    return {
        'state': state,
        'results': _jsonable(calculate(state, overrides)),
        'updated_at': datetime.now(JST).isoformat(),
    }


def _jsonable(results: list) -> list:
    """inf はJSONにできないので None にする"""
    out = []
    for r in results:
        r = dict(r)
        if r['grape_prob'] == float('inf'):
            r['grape_prob'] = None
        out.append(r)
    return out


@app.route('/version')
def version():
    return APP_VERSION


# 検索エンジンブロック用
@app.route('/robots.txt')
def robots():
    return """User-agent: *
Disallow: /
""", 200, {'Content-Type': 'text/plain'}


@app.route('/api/presets')
def api_presets():
    """API: 機種プリセットと打法一覧"""
    return jsonify({
        'default': DEFAULT_MACHINE,
        'machines': [{'key': key, **MACHINES[key]} for key in list_machine_keys()],
        'strategies': STRATEGIES,
    })


@app.route('/api/state', methods=['GET', 'POST'])
def api_state():
    """API: 入力値の取得・更新（機種を変えると入力はクリア）"""
    state = _current_state()
    if request.method == 'POST':
        values = _json_body()
        if values is None:
            return jsonify({'error': 'JSON object expected'}), 400
        model_key = values.get('model_key')
        if model_key and model_key not in MACHINES:
            return jsonify({'error': f'Unknown model: {model_key}'}), 404
        state = _save(update_inputs(state, values))
    return jsonify(_calc_response(state))


@app.route('/api/reset', methods=['POST'])
def api_reset():
    """API: 入力だけクリア"""
    state = _save(reset_inputs(_current_state()))
    return jsonify(_calc_response(state))


@app.route('/api/calc', methods=['POST'])
def api_calc():
    """API: 全打法でぶどう確率を計算

    body: {model_key, games, big, reg, diff, overrides: {replay, cherry, ...}}
    入力を省略した項目は保存済みの値を使う。
    """
    body = _json_body()
    if body is None:
        return jsonify({'error': 'JSON object expected'}), 400
    model_key = body.get('model_key')
    if model_key and model_key not in MACHINES:
        return jsonify({'error': f'Unknown model: {model_key}'}), 404
    state = _save(update_inputs(_current_state(), body))
    return jsonify(_calc_response(state, body.get('overrides')))


@app.route('/api/ocr', methods=['POST'])
def api_ocr():
    """API: スクショをOCRして入力に反映"""
    file = request.files.get('image')
    if file is None or not file.filename:
        return jsonify({'error': 'No image uploaded'}), 400

    state = _current_state()
    try:
        outcome = read_screenshot(state, file.read(), recognize, extract, filename=file.filename)
    except OcrError as e:
        return jsonify({
            'status': 'error',
            'message': f'❌ OCRエラー: {e}',
            'state': state,
        }), 500

    if not outcome['found']:
        return jsonify({
            'status': 'not_found',
            'message': MSG_NOT_FOUND,
            'log': outcome['log'],
            'text': outcome['text'],
            'state': state,
        }), 422

    new_state = _save(outcome['state'])
    response = _calc_response(new_state)
    response.update({
        'status': 'ok',
        'fields': outcome['fields'],
        'log': outcome['log'],
        'text': outcome['text'],
    })
    return jsonify(response)


@app.route('/api/history', methods=['GET', 'POST', 'DELETE'])
def api_history():
    """API: 履歴（GET: 一覧 / POST: 現在の結果を追加 / DELETE: 全削除）"""
    if request.method == 'POST':
        body = _json_body()
        if body is None:
            return jsonify({'error': 'JSON object expected'}), 400
        state = _current_state()
        row = history_row(state, calculate(state, body.get('overrides')))
        rows = session_store.add_history(row, _data_dir())
        return jsonify({'history': rows, 'added': row})
    if request.method == 'DELETE':
        session_store.clear_history(_data_dir())
        return jsonify({'history': []})
    return jsonify({'history': session_store.load_history(_data_dir())})


if __name__ == '__main__':
    import argparse

    parser = argparse.ArgumentParser(description='ジャグラーぶどう逆算')
    parser.add_argument('--host', default='0.0.0.0', help='ホスト (default: 0.0.0.0)')
    parser.add_argument('--port', '-p', type=int, default=5000, help='ポート (default: 5000)')
    parser.add_argument('--debug', '-d', action='store_true', help='デバッグモード')
    args = parser.parse_args()

    print(f"""
====================================
  ジャグラーぶどう逆算
====================================
  URL: http://localhost:{args.port}

  ngrokでトンネル作成:
    ngrok http {args.port}

  登録機種:
""")
    for key in list_machine_keys():
        print(f"    - {key}")
    print()

    app.run(host=args.host, port=args.port, debug=args.debug)
