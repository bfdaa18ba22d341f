import logging

import pytest

from ignore_diff.parser.manifest import Resource


@pytest.fixture(autouse=True)
def _restore_root_logger():
    # The CLI reconfigures the root logger; put it back after each test.
    root = logging.getLogger()
    handlers, level = root.handlers[:], root.level
    yield
    root.handlers[:] = handlers
    root.setLevel(level)


@pytest.fixture
def deployment():
    return Resource.from_body({
        'apiVersion': 'apps/v1',
        'kind': 'Deployment',
        'metadata': {'name': 'web', 'namespace': 'prod'},
        'spec': {
            'replicas': 3,
            'template': {
                'metadata': {'labels': {'app': 'web'}},
                'spec': {'containers': [{'name': 'web', 'image': 'nginx:1.25'}]},
            },
        },
    })


@pytest.fixture
def configmap():
    return Resource.from_body({
        'apiVersion': 'v1',
        'kind': 'ConfigMap',
        'metadata': {'name': 'app-config', 'namespace': 'prod'},
        'data': {'secret': 's3cr3t', 'mode': 'fast'},
    })
