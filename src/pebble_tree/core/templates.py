"""Document templates for "new from template"."""

from collections.abc import Callable, Mapping
from dataclasses import dataclass, field


@dataclass(frozen=True)
class Template:
    """A parameterized document skeleton.

    ``fields`` maps parameter names to their labels; ``render`` receives the
    defaults overlaid with the caller's parameters.
    """

    name: str
    ext: str
    render: Callable[[Mapping[str, str]], str]
    fields: Mapping[str, str] = field(default_factory=dict)
    defaults: Mapping[str, str] = field(default_factory=dict)

    def execute(self, params: Mapping[str, str]) -> str:
        return self.render({**self.defaults, **params})


def _restxq(params: Mapping[str, str]) -> str:
    prefix = params["prefix"]
    namespace = params["namespace"]
    return f"""xquery version "3.1";

module namespace {prefix} = "{namespace}";

declare namespace err = "http://www.w3.org/2005/xqt-errors";
declare namespace rest = "http://exquery.org/ns/restxq";
declare namespace output = "http://www.w3.org/2010/xslt-xquery-serialization";
declare namespace http = "http://expath.org/ns/http-client";


declare
    %rest:GET
    %rest:path("/{prefix}/hello")
    %rest:query-param("name", "{{$name}}")
    %rest:produces("application/xml")
function {prefix}:hello-xml($name) {{
    <hello at="{{current-dateTime()}}">{{$name}}</hello>
}};

declare
    %rest:GET
    %rest:path("/{prefix}/hello")
    %rest:query-param("name", "{{$name}}")
    %rest:produces("application/json")
    %output:method("json")
function {prefix}:hello-json($name) {{
    map {{
        "hello": $name,
        "at": current-dateTime()
    }}
}};
"""


RESTXQ_TEMPLATE = Template(
    name="XQuery RESTXQ Module",
    ext="xqm",
    render=_restxq,
    fields={"namespace": "Namespace", "prefix": "Prefix"},
    defaults={"namespace": "mynamespace", "prefix": "myprefix"},
)

TEMPLATES: dict[str, Template] = {"restxq": RESTXQ_TEMPLATE}
