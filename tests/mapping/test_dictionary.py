"""
Testes para carga do dicionário de mapeamento e MappingStore
"""

import json
import pytest

from migrator.config.config import DEFAULT_MAPPING_FILE
from migrator.core.models import ConfigLoadError, MappingLoadError
from migrator.mapping.dictionary import MappingDictionary, MappingStore, load_mapping_dictionary


def entry(**overrides):
    data = {
        "sourceEndpoint": "/pay",
        "targetEndpoint": "/v2/pay",
        "method": "POST",
        "fieldMappings": {"ssl_amount": "amount"},
    }
    data.update(overrides)
    return data


class TestMappingDictionaryValidation:
    """Testes para MappingDictionary.from_dict"""

    def test_valid_document(self, sample_mapping_data):
        dictionary = MappingDictionary.from_dict(sample_mapping_data)

        assert dictionary.version == "2.0.0"
        assert len(dictionary) == 2
        assert dictionary.total_field_mappings == 7
        assert dictionary.deprecated_fields == ("ssl_txn_auth_token",)
        assert dictionary.last_updated.year == 2024

    def test_field_order_preserved(self, sample_mapping_data):
        dictionary = MappingDictionary.from_dict(sample_mapping_data)
        assert list(dictionary.mappings[1].field_mappings) == [
            "ssl_merchant_id", "ssl_amount", "ssl_card_number", "ssl_exp_date"
        ]

    def test_legacy_aliases(self):
        """Testa que convergeEndpoint/elavonEndpoint são aceitos"""
        dictionary = MappingDictionary.from_dict({
            "version": "1.0",
            "mappings": [{
                "convergeEndpoint": "/pay",
                "elavonEndpoint": "/v2/pay",
                "method": "post",
                "fieldMappings": {},
            }],
        })
        mapping = dictionary.mappings[0]
        assert mapping.source_endpoint == "/pay"
        assert mapping.target_endpoint == "/v2/pay"
        assert mapping.http_method == "POST"

    def test_field_mappings_read_only(self, sample_mapping_data):
        mapping = MappingDictionary.from_dict(sample_mapping_data).mappings[0]
        with pytest.raises(TypeError):
            mapping.field_mappings["ssl_amount"] = "other"

    @pytest.mark.parametrize("document", [
        {"mappings": []},
        {"version": "  ", "mappings": []},
        {"version": "1.0", "mappings": {}},
        {"version": "1.0", "mappings": [entry(method="FETCH")]},
        {"version": "1.0", "mappings": [entry(fieldMappings={"1bad": "amount"})]},
        {"version": "1.0", "mappings": [entry(fieldMappings={"ssl_amount": " "})]},
        {"version": "1.0", "mappings": [entry(sourceEndpoint="")]},
        {"version": "1.0", "mappings": [{"sourceEndpoint": "/pay", "method": "POST", "fieldMappings": {}}]},
    ])
    def test_invalid_documents(self, document):
        with pytest.raises(MappingLoadError):
            MappingDictionary.from_dict(document)

    def test_non_object_rejected(self):
        with pytest.raises(MappingLoadError):
            MappingDictionary.from_dict([])

    def test_error_class(self):
        """Testa que erros de mapeamento são erros de carga de config"""
        assert issubclass(MappingLoadError, ConfigLoadError)

    def test_statistics(self, sample_mapping_data):
        stats = MappingDictionary.from_dict(sample_mapping_data).statistics()
        assert stats["total_endpoints"] == 2
        assert stats["total_field_mappings"] == 7
        assert stats["transformation_rules"] == 1
        assert stats["deprecated_fields"] == 1


class TestLoadMappingDictionary:
    """Testes para load_mapping_dictionary"""

    def test_bundled_dictionary(self):
        dictionary = load_mapping_dictionary(DEFAULT_MAPPING_FILE)

        assert dictionary.version == "1.2.0"
        assert len(dictionary) == 5
        assert "ssl_txn_auth_token" in dictionary.deprecated_fields
        assert dictionary.source_path == str(DEFAULT_MAPPING_FILE)

    def test_load_file(self, mapping_file):
        assert load_mapping_dictionary(mapping_file).version == "2.0.0"

    def test_duplicate_keys_rejected(self, tmp_path):
        path = tmp_path / "dup.json"
        path.write_text(
            '{"version": "1.0", "mappings": [{"sourceEndpoint": "/pay", "targetEndpoint": "/v2", '
            '"method": "POST", "fieldMappings": {"ssl_amount": "amount", "ssl_amount": "total"}}]}',
            encoding='utf-8',
        )
        with pytest.raises(MappingLoadError) as exc_info:
            load_mapping_dictionary(path)
        assert "duplicate key" in str(exc_info.value)

    def test_invalid_json(self, tmp_path):
        path = tmp_path / "broken.json"
        path.write_text("{", encoding='utf-8')
        with pytest.raises(MappingLoadError) as exc_info:
            load_mapping_dictionary(path)
        assert str(path) in str(exc_info.value)

    def test_missing_file(self, tmp_path):
        with pytest.raises(MappingLoadError):
            load_mapping_dictionary(tmp_path / "missing.json")


class TestMappingStore:
    """Testes para MappingStore"""

    def test_empty_store(self):
        store = MappingStore()
        assert store.dictionary.version == "0.0.0"
        assert len(store.dictionary) == 0

    def test_reload_failure_keeps_previous(self, mapping_file):
        """Testa que arquivo inválido na recarga mantém o dicionário anterior"""
        store = MappingStore(mapping_file)
        mapping_file.write_text(json.dumps({"version": "3.0", "mappings": [entry(method="BAD")]}),
                                encoding='utf-8')

        with pytest.raises(MappingLoadError):
            store.reload()

        assert store.dictionary.version == "2.0.0"
        assert len(store.dictionary) == 2

    def test_reload_picks_up_changes(self, mapping_file, sample_mapping_data):
        store = MappingStore(mapping_file)
        sample_mapping_data["version"] = "2.1.0"
        mapping_file.write_text(json.dumps(sample_mapping_data), encoding='utf-8')

        assert store.reload().version == "2.1.0"
        assert store.dictionary.version == "2.1.0"

    def test_reload_without_file(self):
        with pytest.raises(MappingLoadError):
            MappingStore().reload()

    def test_replace(self):
        store = MappingStore()
        store.replace({"version": "9.0", "mappings": [entry()]})
        assert store.dictionary.version == "9.0"

    def test_revision_increases_on_every_swap(self, mapping_file, sample_mapping_data):
        """Testa que a revisão avança mesmo quando o documento mantém a versão"""
        store = MappingStore(mapping_file)
        assert store.revision == 1

        store.reload()
        assert store.revision == 2
        installed = store.replace(sample_mapping_data)
        assert installed.revision == 3
        assert installed.version == store.dictionary.version == "2.0.0"
        assert store.dictionary is installed

    def test_failed_reload_keeps_revision(self, mapping_file):
        store = MappingStore(mapping_file)
        mapping_file.write_text("{", encoding='utf-8')

        with pytest.raises(MappingLoadError):
            store.reload()

        assert store.revision == 1

    def test_revision_ignored_in_equality(self, sample_mapping_data):
        dictionary = MappingDictionary.from_dict(sample_mapping_data)
        assert dictionary.with_revision(5) == dictionary

    def test_export(self, sample_mapping_data):
        store = MappingStore.from_dict(sample_mapping_data)
        exported = json.loads(store.export())

        assert exported["version"] == "2.0.0"
        assert exported["mappings"][0]["sourceEndpoint"] == "/hosted-payments/transaction_token"
        assert exported["deprecatedFields"] == ["ssl_txn_auth_token"]
        assert MappingDictionary.from_dict(exported).total_field_mappings == 7
