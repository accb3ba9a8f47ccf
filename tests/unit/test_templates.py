"""Tests for document templates."""

from pebble_tree.core.templates import RESTXQ_TEMPLATE, TEMPLATES, Template


def test_restxq_defaults() -> None:
    content = RESTXQ_TEMPLATE.execute({})
    assert content.startswith('xquery version "3.1";')
    assert 'module namespace myprefix = "mynamespace";' in content
    assert '%rest:path("/myprefix/hello")' in content


def test_params_override_defaults() -> None:
    content = RESTXQ_TEMPLATE.execute({"namespace": "http://example.com/app", "prefix": "app"})
    assert 'module namespace app = "http://example.com/app";' in content
    assert "function app:hello-json($name)" in content
    assert '%rest:query-param("name", "{$name}")' in content


def test_registry() -> None:
    assert TEMPLATES["restxq"] is RESTXQ_TEMPLATE
    assert RESTXQ_TEMPLATE.ext == "xqm"


def test_custom_template() -> None:
    template = Template(
        name="Hello", ext="txt", render=lambda p: f"hello {p['who']}", defaults={"who": "world"}
    )
    assert template.execute({}) == "hello world"
    assert template.execute({"who": "you"}) == "hello you"
