"""Deterministic code samples (cURL, JavaScript, Python, Go, Node.js) for one operation."""
import json
from collections.abc import Mapping
from datetime import datetime, timezone
from typing import Any

from .models import BODY_METHODS, CodeSamples, Operation
from .schema_tree import SchemaTreeBuilder

LANGUAGES = [
    ("curl", "cURL"),
    ("js", "JavaScript"),
    ("python", "Python"),
    ("go", "Go"),
    ("node", "Node.js"),
]

TOKEN_PLACEHOLDER = "{access_token}"


def _curl_example(url: str, method: str, needs_auth: bool, has_body: bool) -> str:
    lines = [f'curl -X {method.upper()} "{url}"']
    if needs_auth:
        lines.append('  -H "Authorization: Bearer ' + TOKEN_PLACEHOLDER + '"')
    lines.append('  -H "Content-Type: application/json"')
    if has_body:
        lines.append("  -d @/request.json")
    return "\n".join(lines)


def _js_example(url: str, method: str, needs_auth: bool, has_body: bool) -> str:
    code = (
        f"fetch('{url}', {{\n"
        f"    method: '{method.upper()}',\n"
        "    headers: {\n"
        "        'Content-Type': 'application/json',"
    )
    if needs_auth:
        code += "\n        'Authorization': 'Bearer " + TOKEN_PLACEHOLDER + "',"
    code += "\n    },"
    if has_body:
        code += "\n    body: JSON.stringify({ /* datos */ }),"
    code += (
        "\n})\n"
        ".then(response => response.json())\n"
        ".then(data => console.log(data))\n"
        ".catch(error => console.error(error));"
    )
    return code


def _python_example(url: str, method: str, needs_auth: bool, has_body: bool) -> str:
    code = (
        "import requests\n\n"
        f"url = '{url}'\n"
        "headers = {\n"
        "    'Content-Type': 'application/json',"
    )
    if needs_auth:
        code += "\n    'Authorization': 'Bearer " + TOKEN_PLACEHOLDER + "',"
    code += "\n}"
    if has_body:
        code += f"\ndata = {{ # datos }}\nresponse = requests.{method.lower()}(url, headers=headers, json=data)"
    else:
        code += f"\nresponse = requests.{method.lower()}(url, headers=headers)"
    code += "\nprint(response.json())"
    return code


def _go_example(url: str, method: str, needs_auth: bool, has_body: bool) -> str:
    code = (
        "package main\n\n"
        "import (\n"
        '    "bytes"\n'
        '    "encoding/json"\n'
        '    "fmt"\n'
        '    "net/http"\n'
        '    "io/ioutil"\n'
        ")\n\n"
        "func main() {\n"
        f'    url := "{url}"\n'
        "    client := &http.Client{}\n"
        f'    req, err := http.NewRequest("{method.upper()}", url, nil)\n'
        "    if err != nil {\n"
        "        panic(err)\n"
        "    }\n"
        '    req.Header.Set("Content-Type", "application/json")'
    )
    if needs_auth:
        code += '\n    req.Header.Set("Authorization", "Bearer ' + TOKEN_PLACEHOLDER + '")'
    if has_body:
        code += (
            "\n    data := map[string]interface{}{ /* datos */ }"
            "\n    jsonData, _ := json.Marshal(data)"
            "\n    req.Body = ioutil.NopCloser(bytes.NewBuffer(jsonData))"
        )
    code += (
        "\n    resp, err := client.Do(req)\n"
        "    if err != nil {\n"
        "        panic(err)\n"
        "    }\n"
        "    defer resp.Body.Close()\n"
        "    fmt.Println(resp.Status)\n"
        "}"
    )
    return code


def _node_example(url: str, method: str, needs_auth: bool, has_body: bool) -> str:
    code = (
        "const axios = require('axios');\n\n"
        "axios({\n"
        f"    url: '{url}',\n"
        f"    method: '{method.lower()}',\n"
        "    headers: {\n"
        "        'Content-Type': 'application/json',"
    )
    if needs_auth:
        code += "\n        'Authorization': 'Bearer " + TOKEN_PLACEHOLDER + "',"
    code += "\n    },"
    if has_body:
        code += "\n    data: { /* datos */ },"
    code += (
        "\n})\n"
        ".then(response => {\n"
        "    console.log(response.data);\n"
        "})\n"
        ".catch(error => {\n"
        "    console.error(error);\n"
        "});"
    )
    return code


_RENDERERS = {
    "curl": _curl_example,
    "js": _js_example,
    "python": _python_example,
    "go": _go_example,
    "node": _node_example,
}


def has_request_body(operation: Operation, method: str) -> bool:
    return method.lower() in BODY_METHODS and operation.request_body is not None


class CodeSampleRenderer:
    """Renders the fixed per-language templates for an operation."""

    def render(
        self,
        operation: Operation,
        path: str,
        method: str,
        server_url: str,
        has_auth: bool,
    ) -> CodeSamples:
        url = f"{server_url}{path}"
        has_body = has_request_body(operation, method)
        return CodeSamples(**{
            key: render(url, method, has_auth, has_body)
            for key, render in _RENDERERS.items()
        })


def response_example(generated_at: datetime) -> str:
    """Example success response shown next to every operation."""
    stamp = generated_at.astimezone(timezone.utc).isoformat(timespec="milliseconds").replace("+00:00", "Z")
    payload = {
        "data": {
            "message": "Operation completed successfully",
            "id": "12345",
        },
        "metadata": {
            "message": "success",
            "http_code": 200,
            "status": "ok",
            "date_time": stamp,
        },
    }
    return "HTTP/1.1 200 OK\n" + json.dumps(payload, indent=2)


def display_path(path: str, operation: Operation, schemas: Mapping[str, Any] | None = None) -> str:
    # Services list path; surfaces a request body "option" enum when present.
    resolver = SchemaTreeBuilder(schemas)
    schema = resolver.resolve(operation.request_body.json_schema) if operation.request_body else None
    properties = schema.get("properties") if isinstance(schema, Mapping) else None
    option = resolver.resolve(properties.get("option")) if isinstance(properties, Mapping) else None
    enum = option.get("enum") if isinstance(option, Mapping) else None
    if isinstance(enum, list) and len(enum) > 1:
        return f"{path} (option: configurable)"
    if isinstance(enum, list) and len(enum) == 1:
        return f'{path} (option: "{enum[0]}")'
    return path
