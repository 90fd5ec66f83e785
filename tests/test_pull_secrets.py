from helmify.processors.pull_secrets import HELM_EXPRESSION, process_spec_map
from helmify.values import Values


def test_respect_existing_spec():
    spec = {"imagePullSecrets": [{"name": "ips"}]}
    values = Values()
    process_spec_map(spec, values)
    assert spec["imagePullSecrets"][0]["name"] == "ips"
    assert len(values) == 0


def test_provide_default():
    spec = {}
    values = Values()
    process_spec_map(spec, values)
    assert spec["imagePullSecrets"] == HELM_EXPRESSION
    assert len(values) == 1
    assert values["imagePullSecrets"] == []