import json

import yaml
from click.testing import CliRunner

from ignore_diff.cli import main

LIVE = """
apiVersion: apps/v1
kind: Deployment
metadata:
  name: web
  namespace: prod
spec:
  replicas: 7
  template:
    spec:
      containers:
        - name: web
          image: nginx:1.25
---
apiVersion: v1
kind: ConfigMap
metadata:
  name: app-config
  namespace: prod
data:
  secret: rotated
  mode: fast
"""

DESIRED = LIVE.replace('replicas: 7', 'replicas: 3').replace('secret: rotated', 'secret: initial')

SETTINGS = """
ignoreDifferences:
  - group: apps
    kind: Deployment
    jsonPointers:
      - /spec/replicas
resourceOverrides:
  ConfigMap:
    ignoreDifferences: |
      jsonPointers:
      - /data/secret
"""


def _write(tmp_path, name, text):
    path = tmp_path / name
    path.write_text(text)
    return str(path)


def test_normalize_yaml(tmp_path):
    runner = CliRunner()
    result = runner.invoke(main, [
        'normalize', _write(tmp_path, 'live.yaml', LIVE),
        '--settings', _write(tmp_path, 'ignore.yaml', SETTINGS),
    ])
    assert result.exit_code == 0, result.output
    docs = list(yaml.safe_load_all(result.output))
    assert 'replicas' not in docs[0]['spec']
    assert docs[1]['data'] == {'mode': 'fast'}


def test_normalize_json_from_stdin(tmp_path):
    runner = CliRunner()
    result = runner.invoke(
        main,
        ['normalize', '-', '-s', _write(tmp_path, 'ignore.yaml', SETTINGS), '-o', 'json'],
        input=LIVE,
    )
    assert result.exit_code == 0, result.output
    assert [d['kind'] for d in json.loads(result.output)] == ['Deployment', 'ConfigMap']


def test_diff_without_drift(tmp_path):
    runner = CliRunner()
    result = runner.invoke(main, [
        'diff',
        _write(tmp_path, 'live.yaml', LIVE),
        _write(tmp_path, 'desired.yaml', DESIRED),
        '--settings', _write(tmp_path, 'ignore.yaml', SETTINGS),
        '--no-color',
    ])
    assert result.exit_code == 0, result.output
    assert 'No differences.' in result.output


def test_diff_reports_drift_without_settings(tmp_path):
    runner = CliRunner()
    result = runner.invoke(main, [
        'diff',
        _write(tmp_path, 'live.yaml', LIVE),
        _write(tmp_path, 'desired.yaml', DESIRED),
        '-o', 'json',
    ])
    assert result.exit_code == 1
    report = json.loads(result.output)
    paths = {c['path'] for r in report['changes'] for c in r['changes']}
    assert paths == {'/spec/replicas', '/data/secret'}
    assert report['unchanged'] == 0


def test_diff_terminal_output(tmp_path):
    runner = CliRunner()
    result = runner.invoke(main, [
        'diff',
        _write(tmp_path, 'live.yaml', LIVE),
        _write(tmp_path, 'desired.yaml', DESIRED),
        '--no-color',
    ])
    assert result.exit_code == 1
    assert 'CHANGED apps/v1/Deployment/prod/web' in result.output
    assert '~ /spec/replicas: 7 -> 3' in result.output


def test_bad_override_blob_is_an_error(tmp_path):
    settings = _write(tmp_path, 'ignore.yaml', """
resourceOverrides:
  ConfigMap:
    ignoreDifferences: "jsonPointers: ["
""")
    runner = CliRunner()
    result = runner.invoke(main, ['normalize', _write(tmp_path, 'live.yaml', LIVE), '-s', settings])
    assert result.exit_code == 2
    assert 'Error:' in result.output


DATED = """
apiVersion: batch/v1
kind: CronJob
metadata:
  name: nightly
  annotations:
    release-date: 2024-05-01
spec:
  suspend: true
"""


def test_normalize_json_with_unquoted_date(tmp_path):
    runner = CliRunner()
    result = runner.invoke(main, ['normalize', _write(tmp_path, 'cron.yaml', DATED), '-o', 'json'])
    assert result.exit_code == 0, result.output
    doc = json.loads(result.output)[0]
    assert doc['metadata']['annotations'] == {'release-date': '2024-05-01'}


def test_invalid_api_version_is_an_error(tmp_path):
    runner = CliRunner()
    result = runner.invoke(main, ['normalize', _write(tmp_path, 'bad.yaml', 'apiVersion: 1\nkind: Pod\n')])
    assert result.exit_code == 2
    assert 'apiVersion' in result.output
