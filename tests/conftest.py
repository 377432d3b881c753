"""
Shared test fixtures
"""

import json
import copy
import pytest
from pathlib import Path

import migrator

from migrator.analysis.service import AnalysisService
from migrator.mapping.mapper import MigrationMapper
from migrator.patterns.matcher import PatternMatcher
from migrator.patterns.pattern_config import PatternConfigManager


SAMPLE_MAPPING = {
    "version": "2.0.0",
    "lastUpdated": "2024-01-15T10:00:00",
    "mappings": [
        {
            "sourceEndpoint": "/hosted-payments/transaction_token",
            "targetEndpoint": "/api/v1/payments/hosted",
            "method": "POST",
            "fieldMappings": {
                "ssl_merchant_id": "merchantAlias",
                "ssl_amount": "amount",
                "ssl_first_name": "firstName",
            },
        },
        {
            "sourceEndpoint": "/ProcessTransactionOnline",
            "targetEndpoint": "/api/v1/transactions",
            "method": "POST",
            "fieldMappings": {
                "ssl_merchant_id": "merchantAlias",
                "ssl_amount": "total",
                "ssl_card_number": "cardNumber",
                "ssl_exp_date": "expirationDate",
            },
        },
    ],
    "transformationRules": {
        "ssl_exp_date": "MMYY string to {month, year}",
    },
    "deprecatedFields": ["ssl_txn_auth_token"],
}


# ==================== Mapping Fixtures ====================

@pytest.fixture
def sample_mapping_data():
    """Mapping dictionary document with two endpoints"""
    return copy.deepcopy(SAMPLE_MAPPING)


@pytest.fixture
def mapper(sample_mapping_data):
    """MigrationMapper over the sample dictionary"""
    return MigrationMapper.from_dict(sample_mapping_data)


@pytest.fixture
def mapping_file(tmp_path, sample_mapping_data):
    """Sample dictionary written to disk"""
    path = tmp_path / "mapping.json"
    path.write_text(json.dumps(sample_mapping_data), encoding='utf-8')
    return path


# ==================== Pattern Fixtures ====================

@pytest.fixture
def pattern_manager():
    """Manager holding the built-in patterns"""
    return PatternConfigManager()


@pytest.fixture
def matcher(pattern_manager):
    """Matcher bound to pattern_manager"""
    return PatternMatcher(pattern_manager)


@pytest.fixture
def service(pattern_manager, mapper):
    """Analysis service over the built-in patterns and the sample dictionary"""
    return AnalysisService(pattern_manager, mapper)


# ==================== Source Fixtures ====================

@pytest.fixture
def sample_js_source():
    """JavaScript calling ProcessTransactionOnline with two credential fields"""
    return (
        "const url = '/ProcessTransactionOnline';\n"
        "const body = { ssl_amount: total, ssl_card_number: card };\n"
    )


@pytest.fixture
def sample_project(tmp_path):
    """Small source tree with one Converge file, one clean file and ignored/unsupported files"""
    root = tmp_path / "project"
    (root / "src").mkdir(parents=True)
    (root / "node_modules" / "lib").mkdir(parents=True)

    (root / "src" / "pay.js").write_text(
        "const body = { ssl_amount: total, ssl_card_number: card };\n", encoding='utf-8'
    )
    (root / "src" / "util.py").write_text("def add(a, b):\n    return a + b\n", encoding='utf-8')
    (root / "node_modules" / "lib" / "index.js").write_text("ssl_amount\n", encoding='utf-8')
    (root / "README.txt").write_text("ssl_amount\n", encoding='utf-8')
    return root


@pytest.fixture
def example_pattern_file():
    """Bundled example pattern override file"""
    return Path(migrator.__file__).parent / "resources" / "patterns.example.yaml"
