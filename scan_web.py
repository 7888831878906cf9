#!/usr/bin/env python3
"""
Barcode Scanner Web App
Run: python3 scan_web.py
Visit: http://<your-ip>:8080 on your phone
"""

import socket

import cv2
import numpy as np
from flask import Flask, request, jsonify, render_template_string

import scan_config
from binary_bitmap import BinaryBitmap
from reader_errors import NotFoundError
from scan import decode_bitmap, make_hints

app = Flask(__name__)

HTML = '''
<!DOCTYPE html>
<html>
<head>
    <meta charset="UTF-8">
    <meta name="viewport" content="width=device-width, initial-scale=1.0, maximum-scale=1.0, user-scalable=no">
    <title>Barcode Scanner</title>
    <style>
        * { box-sizing: border-box; margin: 0; padding: 0; }
        body { font-family: -apple-system, BlinkMacSystemFont, 'Segoe UI', Roboto, sans-serif;
               background: #16213e; min-height: 100vh; padding: 20px; color: #fff; }
        .container { max-width: 500px; margin: 0 auto; }
        h1 { text-align: center; margin-bottom: 20px; font-size: 24px; }
        .panel { background: rgba(255,255,255,0.1); border-radius: 16px; padding: 20px; margin-bottom: 20px; }
        .btn { display: inline-block; padding: 14px 28px; margin: 8px; border-radius: 12px;
               font-size: 16px; font-weight: 600; cursor: pointer; background: #4CAF50; color: white; }
        input[type="file"] { display: none; }
        input[type="text"] { width: 100%; padding: 8px; border-radius: 8px; border: none; margin: 6px 0; }
        #result { display: none; word-break: break-all; line-height: 1.6; white-space: pre-line; }
        #result.success { background: rgba(76, 175, 80, 0.2); border: 1px solid #4CAF50; }
        #result.error { background: rgba(244, 67, 54, 0.2); border: 1px solid #f44336; }
    </style>
</head>
<body>
    <div class="container">
        <h1>Barcode Scanner</h1>
        <div class="panel">
            <label>Formats (blank = all)
                <input type="text" id="formats" placeholder="QR_CODE,EAN_13,DATA_COLUMN_MULTI">
            </label>
            <label><input type="checkbox" id="tryHarder"> Try harder</label>
            <label><input type="checkbox" id="multi"> Sheet + barcode</label>
            <div style="text-align:center">
                <label class="btn">Camera / Gallery
                    <input type="file" id="imageInput" accept="image/*" capture="environment">
                </label>
            </div>
        </div>
        <div class="panel" id="result"></div>
    </div>
    <script>
        const result = document.getElementById('result');
        document.getElementById('imageInput').onchange = (e) => {
            if (!e.target.files.length) return;
            const formData = new FormData();
            formData.append('image', e.target.files[0]);
            formData.append('formats', document.getElementById('formats').value);
            if (document.getElementById('tryHarder').checked) formData.append('try_harder', '1');
            if (document.getElementById('multi').checked) formData.append('multi', '1');
            result.style.display = 'block';
            result.className = 'panel';
            result.textContent = 'Decoding...';
            fetch('/decode', { method: 'POST', body: formData })
                .then(r => r.json())
                .then(data => {
                    if (data.success && data.count > 0) {
                        result.className = 'panel success';
                        result.textContent = data.results.map(r => r.format + ': ' + r.text).join('\\n');
                    } else if (data.success) {
                        result.className = 'panel error';
                        result.textContent = 'No codes found';
                    } else {
                        result.className = 'panel error';
                        result.textContent = 'Error: ' + data.error;
                    }
                })
                .catch(err => {
                    result.className = 'panel error';
                    result.textContent = 'Network error: ' + err.message;
                });
        };
    </script>
</body>
</html>
'''


def load_upload(file):
    """Decode an uploaded image file into a BinaryBitmap."""
    data = np.frombuffer(file.read(), dtype=np.uint8)
    image = cv2.imdecode(data, cv2.IMREAD_COLOR) if data.size else None
    if image is None:
        raise ValueError("Cannot read uploaded image")
    return BinaryBitmap.from_gray(image)


@app.route('/')
def index():
    return render_template_string(HTML)


@app.route('/decode', methods=['POST'])
def decode():
    if 'image' not in request.files:
        return jsonify({'success': False, 'error': 'No image uploaded'})

    file = request.files['image']
    if file.filename == '':
        return jsonify({'success': False, 'error': 'No file selected'})

    try:
        bitmap = load_upload(file)
        hints = make_hints(request.form.get('formats'), bool(request.form.get('try_harder')))
        print(f"[DECODE] {bitmap.width}x{bitmap.height} bitmap, hints={hints}", flush=True)
        try:
            results = decode_bitmap(bitmap, hints, multi=bool(request.form.get('multi')))
        except NotFoundError:
            results = []
        results = results[:scan_config.MAX_RESULTS]
        print(f"[DECODE] Found {len(results)} code(s)", flush=True)
        for i, r in enumerate(results):
            print(f"[DECODE] {i+1}: {r.text[:60]}...", flush=True)

        payload = [{'format': r.format.name, 'text': r.text} for r in results]
        return jsonify({'success': True, 'results': payload, 'count': len(payload)})

    except ValueError as e:
        print(f"[DECODE] Error: {e}", flush=True)
        return jsonify({'success': False, 'error': str(e)})


def local_ip(route_host='8.8.8.8'):
    """LAN address phones can reach; no packet is sent by a UDP connect."""
    with socket.socket(socket.AF_INET, socket.SOCK_DGRAM) as s:
        try:
            s.connect((route_host, 80))
            return s.getsockname()[0]
        except OSError:
            return '127.0.0.1'


def banner(ip, port=None):
    port = port or scan_config.WEB_PORT
    return '\n'.join([
        "=" * 50,
        "Column Scanner web app",
        "=" * 50,
        f"Phone:    http://{ip}:{port}",
        f"Computer: http://localhost:{port}",
        "Ctrl+C stops the server",
    ])


if __name__ == '__main__':
    print(banner(local_ip()), flush=True)
    app.run(host='0.0.0.0', port=scan_config.WEB_PORT, debug=False)
