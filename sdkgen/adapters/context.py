"""
Description -> template context.

Turns a parsed OpenAPI 3.0 / Swagger 2.0 document into the plain data the
client templates render: enum declarations, dataclass models and client
operations. Everything that needs Python-level decisions (names, annotations,
signatures, conversion expressions) is computed here so the templates stay
declarative.
"""

from collections.abc import Mapping
from dataclasses import dataclass, field
from typing import Any, Dict, FrozenSet, List, Optional, Tuple

from sdkgen.description import DescriptionDocument
from sdkgen.errors import UnresolvableReferenceError
from sdkgen.gen_logging import get_logger
from sdkgen.templates import _constant_case, _pascal_case, _quote, _snake_case

logger = get_logger(__name__)

HTTP_METHODS = ("get", "put", "post", "delete", "patch", "head", "options")
ENUM_SUFFIX = "Enum"

TYPE_MAP = {
    "string": "str",
    "integer": "int",
    "number": "float",
    "boolean": "bool",
}

_MAX_REF_DEPTH = 16


@dataclass
class TypeInfo:
    """Annotation text plus what the templates need to (de)serialize it."""
    annotation: str
    model: Optional[str] = None
    is_list: bool = False

    def from_expr(self, value: str, qualifier: str = "") -> str:
        if self.model and self.is_list:
            return f"[{qualifier}{self.model}.from_dict(item) for item in {value}]"
        if self.model:
            return f"{qualifier}{self.model}.from_dict({value})"
        return value

    def to_expr(self, value: str) -> str:
        if self.model and self.is_list:
            return f"[item.to_dict() for item in {value}]"
        if self.model:
            return f"{value}.to_dict()"
        return value


@dataclass
class EnumMember:
    name: str
    value: str


@dataclass
class EnumSpec:
    name: str
    schema_name: str
    members: List[EnumMember]
    description: str = ""


@dataclass
class FieldSpec:
    name: str
    wire_name: str
    type: TypeInfo
    required: bool
    description: str = ""

    @property
    def annotation(self) -> str:
        if self.required:
            return self.type.annotation
        return f"Optional[{self.type.annotation}]"

    @property
    def declaration(self) -> str:
        if self.required:
            return f"{self.name}: {self.annotation}"
        return f"{self.name}: {self.annotation} = None"

    @property
    def from_expr(self) -> str:
        raw = f"data[{_quote(self.wire_name)}]" if self.required else f"data.get({_quote(self.wire_name)})"
        converted = self.type.from_expr(raw)
        if converted == raw or self.required:
            return converted
        return f"{converted} if {raw} is not None else None"

    @property
    def to_expr(self) -> str:
        return self.type.to_expr(f"self.{self.name}")


@dataclass
class ModelSpec:
    name: str
    schema_name: str
    fields: List[FieldSpec] = field(default_factory=list)
    description: str = ""


@dataclass
class ParamSpec:
    name: str
    wire_name: str
    location: str
    type: TypeInfo
    required: bool

    @property
    def signature(self) -> str:
        if self.required:
            return f"{self.name}: {self.type.annotation}"
        return f"{self.name}: Optional[{self.type.annotation}] = None"


@dataclass
class OperationSpec:
    name: str
    method: str
    path: str
    params: List[ParamSpec] = field(default_factory=list)
    body: Optional[ParamSpec] = None
    response: Optional[TypeInfo] = None
    summary: str = ""
    use_options: bool = True

    @property
    def path_params(self) -> List[ParamSpec]:
        return [p for p in self.params if p.location == "path"]

    @property
    def query_params(self) -> List[ParamSpec]:
        return [p for p in self.params if p.location == "query"]

    @property
    def header_params(self) -> List[ParamSpec]:
        return [p for p in self.params if p.location == "header"]

    @property
    def signature(self) -> str:
        params = list(self.params)
        if self.body is not None:
            params.append(self.body)
        required = [p.signature for p in params if p.required]
        optional = [p.signature for p in params if not p.required]
        parts = ["self"]
        if self.use_options and (required or optional):
            parts.append("*")
        return ", ".join(parts + required + optional)

    @property
    def path_expr(self) -> str:
        if not self.path_params:
            return _quote(self.path)
        path = self.path
        for param in self.path_params:
            path = path.replace("{" + param.wire_name + "}", "{" + param.name + "}")
        return "f" + _quote(path)

    @property
    def return_annotation(self) -> str:
        return self.response.annotation if self.response else "Any"

    @property
    def result_expr(self) -> str:
        if self.response is None:
            return "data"
        return self.response.from_expr("data", qualifier="models.")


@dataclass
class ClientContext:
    title: str
    api_version: str
    description_version: str
    base_url: str
    checksum: str
    client_class: str
    enums: List[EnumSpec]
    models: List[ModelSpec]
    operations: List[OperationSpec]
    options: Dict[str, Any] = field(default_factory=dict)

    def as_dict(self) -> Dict[str, Any]:
        return {
            "title": self.title,
            "api_version": self.api_version,
            "description_version": self.description_version,
            "base_url": self.base_url,
            "checksum": self.checksum,
            "client_class": self.client_class,
            "enums": self.enums,
            "models": self.models,
            "operations": self.operations,
            "options": self.options,
        }


class DescriptionParser:
    """Reads schemas and operations and resolves local $ref pointers."""

    def __init__(self, document: DescriptionDocument, schema_root: Tuple[str, ...]):
        self.spec = document.data
        self.path = document.path
        self.schema_root = schema_root
        self._ref_cache: Dict[str, Any] = {}

    def resolve_ref(self, ref: str) -> Dict[str, Any]:
        """
        Resolve a local $ref pointer to its target.

        Raises:
            UnresolvableReferenceError: *ref* points into another document.
        """
        if ref in self._ref_cache:
            return self._ref_cache[ref]

        if not ref.startswith("#/"):
            raise UnresolvableReferenceError(ref, self.path)

        result = self.spec
        for part in ref[2:].split("/"):
            part = part.replace("~1", "/").replace("~0", "~")
            result = result.get(part, {}) if isinstance(result, Mapping) else {}

        self._ref_cache[ref] = result
        return result

    def resolve(self, obj: Dict[str, Any]) -> Dict[str, Any]:
        depth = 0
        while isinstance(obj, dict) and "$ref" in obj and depth < _MAX_REF_DEPTH:
            obj = self.resolve_ref(obj["$ref"])
            depth += 1
        return obj if isinstance(obj, dict) else {}

    def schema_ref(self, name: str) -> str:
        """Local $ref pointing at the component schema *name*."""
        escaped = name.replace("~", "~0").replace("/", "~1")
        return "#/" + "/".join(self.schema_root + (escaped,))

    def get_schemas(self) -> Dict[str, Dict[str, Any]]:
        node = self.spec
        for part in self.schema_root:
            node = node.get(part) or {}
        return dict(node)

    def get_paths(self) -> Dict[str, Dict[str, Any]]:
        return dict(self.spec.get("paths") or {})


def _ref_name(ref: str) -> str:
    return ref.rsplit("/", 1)[-1].replace("~1", "/").replace("~0", "~")


def _is_string_enum(schema: Dict[str, Any]) -> bool:
    values = schema.get("enum")
    return bool(values) and schema.get("type", "string") == "string" and all(isinstance(v, str) for v in values)


def _is_object(schema: Dict[str, Any]) -> bool:
    return schema.get("type") == "object" or "properties" in schema or "allOf" in schema


def enum_class_name(schema_name: str) -> str:
    name = _pascal_case(schema_name)
    return name if name.endswith(ENUM_SUFFIX) else f"{name}{ENUM_SUFFIX}"


class TypeMapper:
    """Maps description schemas to Python annotations."""

    def __init__(self, parser: DescriptionParser, enum_names: Dict[str, str],
                 model_names: Dict[str, str], use_union_types: bool = True):
        self.parser = parser
        self.enum_names = enum_names
        self.model_names = model_names
        self.use_union_types = use_union_types

    def map(self, schema: Optional[Dict[str, Any]], qualifier: str = "", depth: int = 0) -> TypeInfo:
        """
        Annotation for *schema*.

        Args:
            schema: The schema object (may be a $ref).
            qualifier: Prefix for model names ("models." in client code).
            depth: Recursion guard for alias chains.
        """
        if not schema or depth > _MAX_REF_DEPTH:
            return TypeInfo("Any")

        if "$ref" in schema:
            name = _ref_name(schema["$ref"])
            if name in self.model_names:
                model = self.model_names[name]
                return TypeInfo(f"{qualifier}{model}", model=model)
            if name in self.enum_names:
                # Client signatures take plain strings; only models.py sees the enum class
                return TypeInfo("str" if qualifier else self.enum_names[name])
            return self.map(self.parser.resolve(schema), qualifier, depth + 1)

        if _is_string_enum(schema):
            if self.use_union_types:
                return TypeInfo("Literal[" + ", ".join(_quote(v) for v in schema["enum"]) + "]")
            return TypeInfo("str")

        schema_type = schema.get("type")
        if schema_type == "array":
            item = self.map(schema.get("items"), qualifier, depth + 1)
            return TypeInfo(f"List[{item.annotation}]", model=item.model, is_list=item.model is not None)

        if schema_type == "object" or "properties" in schema:
            extra = schema.get("additionalProperties")
            if isinstance(extra, dict) and extra:
                return TypeInfo(f"Dict[str, {self.map(extra, qualifier, depth + 1).annotation}]")
            return TypeInfo("Dict[str, Any]")

        if schema_type == "string" and schema.get("format") == "binary":
            return TypeInfo("bytes")

        return TypeInfo(TYPE_MAP.get(schema_type, "Any"))


class ContextBuilder:
    """Builds the ClientContext for one description document."""

    def __init__(self, document: DescriptionDocument, schema_root: Tuple[str, ...],
                 use_union_types: bool = True, use_options: bool = True):
        self.document = document
        self.parser = DescriptionParser(document, schema_root)
        self.use_options = use_options

        schemas = self.parser.get_schemas()
        self.enum_names = {
            name: enum_class_name(name) for name, schema in schemas.items() if _is_string_enum(schema or {})
        }
        self.model_names = {
            name: _pascal_case(name)
            for name, schema in schemas.items()
            if name not in self.enum_names and _is_object(schema or {})
        }
        self.types = TypeMapper(self.parser, self.enum_names, self.model_names, use_union_types)

    # -- schemas -------------------------------------------------------------

    def build_enums(self) -> List[EnumSpec]:
        enums = []
        for schema_name, class_name in self.enum_names.items():
            schema = self.parser.get_schemas()[schema_name]
            members, seen = [], set()
            for value in schema["enum"]:
                member = _constant_case(value)
                candidate, n = member, 2
                while candidate in seen:
                    candidate = f"{member}_{n}"
                    n += 1
                seen.add(candidate)
                members.append(EnumMember(name=candidate, value=value))
            enums.append(EnumSpec(
                name=class_name,
                schema_name=schema_name,
                members=members,
                description=schema.get("description", ""),
            ))
        return enums

    def _collect_properties(self, schema: Dict[str, Any], seen: FrozenSet[str] = frozenset()):
        ref = schema.get("$ref") if isinstance(schema, dict) else None
        if ref is not None:
            if ref in seen:
                logger.warning(f"[WARN] {self.parser.path}: circular allOf reference {ref}, skipping it")
                return {}, set()
            seen = seen | {ref}
        schema = self.parser.resolve(schema)
        properties = dict(schema.get("properties") or {})
        required = set(schema.get("required") or [])
        for part in schema.get("allOf") or []:
            part_props, part_required = self._collect_properties(part, seen)
            for name, prop in part_props.items():
                properties.setdefault(name, prop)
            required |= part_required
        return properties, required

    def build_models(self) -> List[ModelSpec]:
        models = []
        schemas = self.parser.get_schemas()
        for schema_name, class_name in self.model_names.items():
            schema = schemas[schema_name]
            properties, required = self._collect_properties(schema, frozenset({self.parser.schema_ref(schema_name)}))

            fields, used = [], set()
            for wire_name, prop in properties.items():
                name = _snake_case(wire_name)
                while name in used:
                    name = f"{name}_"
                used.add(name)
                prop = prop or {}
                fields.append(FieldSpec(
                    name=name,
                    wire_name=wire_name,
                    type=self.types.map(prop),
                    required=wire_name in required and not prop.get("nullable", False),
                    description=self.parser.resolve(prop).get("description", ""),
                ))
            # dataclasses need fields with defaults last
            fields.sort(key=lambda f: not f.required)
            models.append(ModelSpec(
                name=class_name,
                schema_name=schema_name,
                fields=fields,
                description=schema.get("description", ""),
            ))
        return models

    # -- operations ----------------------------------------------------------

    def _param(self, raw: Dict[str, Any]) -> Optional[ParamSpec]:
        param = self.parser.resolve(raw)
        location = param.get("in")
        if location not in ("path", "query", "header"):
            return None
        schema = param.get("schema") or param
        return ParamSpec(
            name=_snake_case(param.get("name", "")),
            wire_name=param.get("name", ""),
            location=location,
            type=self.types.map(schema, qualifier="models."),
            required=bool(param.get("required")) or location == "path",
        )

    @staticmethod
    def _json_schema(container: Dict[str, Any]) -> Optional[Dict[str, Any]]:
        content = container.get("content")
        if isinstance(content, dict) and content:
            for media_type, media in content.items():
                if "json" in media_type and isinstance(media, dict):
                    return media.get("schema")
            first = next(iter(content.values()))
            return first.get("schema") if isinstance(first, dict) else None
        return container.get("schema")

    def _body(self, operation: Dict[str, Any], parameters: List[Dict[str, Any]]) -> Optional[ParamSpec]:
        schema, required = None, False
        if "requestBody" in operation:
            request_body = self.parser.resolve(operation["requestBody"])
            schema = self._json_schema(request_body)
            required = bool(request_body.get("required"))
        else:
            for raw in parameters:
                param = self.parser.resolve(raw)
                if param.get("in") == "body":
                    schema = param.get("schema")
                    required = bool(param.get("required"))
                    break
        if schema is None:
            return None
        return ParamSpec(
            name="body",
            wire_name="body",
            location="body",
            type=self.types.map(schema, qualifier="models."),
            required=required,
        )

    def _response(self, operation: Dict[str, Any]) -> Optional[TypeInfo]:
        responses = operation.get("responses") or {}
        for status, response in sorted(responses.items(), key=lambda item: str(item[0])):
            if str(status).startswith("2"):
                response = self.parser.resolve(response or {})
                schema = self._json_schema(response)
                return self.types.map(schema, qualifier="models.") if schema else None
        return None

    def build_operations(self) -> List[OperationSpec]:
        operations, used = [], set()
        for path, path_item in self.parser.get_paths().items():
            path_item = path_item or {}
            shared_params = path_item.get("parameters") or []
            for method in HTTP_METHODS:
                operation = path_item.get(method)
                if not isinstance(operation, dict):
                    continue
                raw_params = list(shared_params) + list(operation.get("parameters") or [])

                params, seen = [], set()
                # Operation-level parameters override path-level ones
                for raw in reversed(raw_params):
                    spec = self._param(raw)
                    if spec is None or (spec.location, spec.wire_name) in seen:
                        continue
                    seen.add((spec.location, spec.wire_name))
                    params.insert(0, spec)

                body = self._body(operation, raw_params)
                taken = {"self", "body"} if body is not None else {"self"}
                for spec in params:
                    while spec.name in taken:
                        spec.name = f"{spec.name}_"
                    taken.add(spec.name)

                name = _snake_case(operation.get("operationId") or f"{method}_{path}")
                while name in used:
                    name = f"{name}_"
                used.add(name)

                operations.append(OperationSpec(
                    name=name,
                    method=method.upper(),
                    path=path,
                    params=params,
                    body=body,
                    response=self._response(operation),
                    summary=operation.get("summary") or operation.get("description") or "",
                    use_options=self.use_options,
                ))
        return operations


def build_client_context(document: DescriptionDocument, schema_root: Tuple[str, ...], base_url: str,
                         description_version: str, checksum: str, options=None) -> ClientContext:
    """Assemble the full template context for a description document."""
    use_union_types = getattr(options, "use_union_types", True)
    use_options = getattr(options, "use_options", True)
    builder = ContextBuilder(document, schema_root, use_union_types=use_union_types, use_options=use_options)

    info = document.data.get("info") or {}
    title = document.title
    client_name = _pascal_case(title)
    if not client_name.endswith("Client"):
        client_name = f"{client_name}Client"

    context = ClientContext(
        title=title,
        api_version=str(info.get("version") or "0.0.0"),
        description_version=description_version,
        base_url=base_url,
        checksum=checksum,
        client_class=client_name,
        enums=builder.build_enums(),
        models=builder.build_models(),
        operations=builder.build_operations(),
        options=dict(getattr(options, "extra", {}) or {}),
    )
    logger.debug(
        f"[CONTEXT] {len(context.enums)} enums, {len(context.models)} models, "
        f"{len(context.operations)} operations"
    )
    return context
