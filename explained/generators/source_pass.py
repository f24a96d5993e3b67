"""Module-level explanation pass over Python source files.

Processes every explained function of a module in declaration order,
the way the decorators would at import time, and produces standalone
source: directives and ``expl`` markers are erased, docstrings carry
the composed tables, and the module no longer imports this package.
"""

import ast
import logging
from dataclasses import dataclass, field
from pathlib import Path
from typing import Iterable, Iterator, Optional

from explained.errors import UsageError
from explained.generators import crossref
from explained.generators.composer import DocumentationComposer, insert_docstring
from explained.generators.registry import ExplanationRegistry
from explained.parsers.directives import (
    DIRECTIVE_NAMES,
    Directive,
    DirectiveKind,
    directive_name,
    parse_directives,
)
from explained.parsers.extractor import DEFAULT_MARKER, AnnotationExtractor, FunctionNode
from explained.parsers.structure import DocComment, ExplanationPair, ExplanationRecord
from explained.utils.config import ExplanationConfig

logger = logging.getLogger(__name__)

_PACKAGE = "explained"
_INDENT = "    "


@dataclass
class FunctionExplanation:
    """Result of processing one decorated function.

    Attributes:
        name: Registry key of the function.
        qualname: Dotted name including enclosing classes and functions.
        line_number: Line of the ``def`` statement.
        message: Summary message, if the function is ``@explained``.
        pairs: Rows of the function's own table as finally rendered.
        docstring: The composed docstring.
        record: Registry record created by ``@explained``, if any.
    """

    name: str
    qualname: str
    line_number: int = 0
    message: Optional[str] = None
    pairs: list[ExplanationPair] = field(default_factory=list)
    docstring: Optional[str] = None
    record: Optional[ExplanationRecord] = None


@dataclass
class ProcessedModule:
    """Outcome of an explanation pass over one module.

    Attributes:
        file_path: Path of the processed source.
        source: The rewritten module source.
        functions: Per-function results in declaration order.
        records: Registry records created during the pass.
    """

    file_path: str
    source: str
    functions: list[FunctionExplanation] = field(default_factory=list)
    records: list[ExplanationRecord] = field(default_factory=list)


@dataclass
class _Definition:
    node: ast.AST
    qualname: str
    depth: int


class SourceProcessor:
    """Runs the explanation pass over Python modules.

    Each pass validates the whole module first (directive arguments,
    marker shapes, markers outside explained functions, directives on
    classes) and only then rewrites anything, so a failing module
    produces no output at all.
    """

    def __init__(
        self,
        config: Optional[ExplanationConfig] = None,
        registry: Optional[ExplanationRegistry] = None,
        marker: str = DEFAULT_MARKER,
    ) -> None:
        """Initialize the processor.

        Args:
            config: Export and suppression settings.
            registry: Registry shared across passes. A fresh registry is
                created for every pass when not provided.
            marker: Name of the marker callable.
        """
        self.config = config or ExplanationConfig()
        self.registry = registry
        self.marker = marker

    def process_file(self, file_path: str) -> ProcessedModule:
        """Run the pass over a Python source file.

        Raises:
            FileNotFoundError: If the file does not exist.
            SyntaxError: If the file contains invalid Python syntax.
            ExplanationError: If an annotation is misused.
        """
        path = Path(file_path)
        if not path.exists():
            raise FileNotFoundError(f"File not found: {file_path}")

        source = path.read_text(encoding="utf-8")
        return self.process_source(source, file_path)

    def process_source(self, source: str, file_path: str = "<string>") -> ProcessedModule:
        """Run the pass over Python source code.

        Functions are explained in declaration order, so a function can
        reference any function declared above it. Their bodies are then
        rewritten innermost first, so nested explained functions end up
        in the rewritten body of the function enclosing them.

        Args:
            source: Python source code as a string.
            file_path: Optional file path for reference in the result.

        Returns:
            A ProcessedModule with the rewritten source.

        Raises:
            SyntaxError: If the source contains invalid Python syntax.
            UsageError: If a directive or marker is misused.
            LiteralTypeError: If a directive or marker argument is not a
                literal.
            ExplanationNotFoundError: If a cross-reference names an
                unknown function.
        """
        tree = ast.parse(source, filename=file_path)
        registry = self.registry if self.registry is not None else ExplanationRegistry()
        extractor = AnnotationExtractor(marker=self.marker, source=source)
        composer = DocumentationComposer(self.config)

        planned = self._validate(tree, extractor)

        results = [
            self._explain_function(definition, directives, extractor, composer, registry)
            for definition, directives in planned
        ]
        for (definition, directives), (_, doc) in reversed(list(zip(planned, results))):
            self._rewrite_function(definition, directives, doc, extractor)
        self._strip_imports(tree)
        ast.fix_missing_locations(tree)

        functions = [function for function, _ in results]
        logger.info(
            "Processed %s: %d explained functions", file_path, len(functions)
        )
        return ProcessedModule(
            file_path=file_path,
            source=ast.unparse(tree) + "\n",
            functions=functions,
            records=[f.record for f in functions if f.record is not None],
        )

    def _iter_definitions(
        self, nodes: Iterable[ast.AST], prefix: str = "", depth: int = 0
    ) -> Iterator[_Definition]:
        """Yield every function and class definition in declaration order.

        ``depth`` counts the indentation levels of the definition line.
        """
        for node in nodes:
            if isinstance(node, (ast.FunctionDef, ast.AsyncFunctionDef)):
                yield _Definition(node, prefix + node.name, depth)
                yield from self._iter_definitions(
                    node.body, f"{prefix}{node.name}.<locals>.", depth + 1
                )
            elif isinstance(node, ast.ClassDef):
                yield _Definition(node, prefix + node.name, depth)
                yield from self._iter_definitions(
                    node.body, f"{prefix}{node.name}.", depth + 1
                )
            elif isinstance(node, ast.excepthandler):
                yield from self._iter_definitions(ast.iter_child_nodes(node), prefix, depth)
            elif isinstance(node, (ast.stmt, ast.match_case)):
                yield from self._iter_definitions(ast.iter_child_nodes(node), prefix, depth + 1)

    def _validate(
        self, tree: ast.Module, extractor: AnnotationExtractor
    ) -> list[tuple[_Definition, list[Directive]]]:
        """Check the whole module before anything is rewritten.

        Returns:
            The decorated function definitions with their directives.
        """
        planned = []
        covered: set[int] = set()
        for definition in self._iter_definitions(tree.body):
            directives = parse_directives(definition.node)
            if not directives:
                continue
            if isinstance(definition.node, ast.ClassDef):
                raise UsageError(
                    f"@{directives[0].kind.value} can only be applied to a function, "
                    f"not class {definition.qualname} (line {definition.node.lineno})"
                )
            if any(d.kind == DirectiveKind.EXPLAINED for d in directives):
                extractor.validate(definition.node)
                covered.update(id(call) for call in extractor.find_markers(definition.node))
            planned.append((definition, directives))

        for node in ast.walk(tree):
            if extractor.is_marker(node) and id(node) not in covered:
                raise UsageError(
                    f"{self.marker}() can't be used outside a function decorated "
                    f"with @explained (line {node.lineno})"
                )
        return planned

    def _explain_function(
        self,
        definition: _Definition,
        directives: list[Directive],
        extractor: AnnotationExtractor,
        composer: DocumentationComposer,
        registry: ExplanationRegistry,
    ) -> tuple[FunctionExplanation, DocComment]:
        """Apply a function's directives to its docstring and the registry."""
        node: FunctionNode = definition.node
        doc = DocComment(original=ast.get_docstring(node))
        result = FunctionExplanation(
            name=node.name,
            qualname=definition.qualname,
            line_number=node.lineno,
        )

        for directive in directives:
            if directive.kind == DirectiveKind.EXPLAINED:
                extraction = extractor.extract(node)
                composer.apply(doc, directive.argument, extraction.pairs)
                result.record = registry.register(node.name, directive.argument, extraction.pairs)
                result.message = directive.argument
                result.pairs = list(extraction.pairs)
            elif directive.kind == DirectiveKind.ADD_EXPLANATION:
                crossref.add_explanation(doc, registry, directive.argument)
            elif directive.kind == DirectiveKind.ADD_EXPLANATIONS:
                crossref.add_explanations(doc, registry, directive.argument)
            else:
                result.pairs = crossref.merge_explanations(
                    doc, registry, node.name, directive.argument
                )

        result.docstring = doc.render()
        logger.debug("Processed %s (%d directives)", definition.qualname, len(directives))
        return result, doc

    def _rewrite_function(
        self,
        definition: _Definition,
        directives: list[Directive],
        doc: DocComment,
        extractor: AnnotationExtractor,
    ) -> None:
        """Erase markers and directives of a function and set its docstring."""
        node: FunctionNode = definition.node
        if any(d.kind == DirectiveKind.EXPLAINED for d in directives):
            node.body = extractor.extract(node).node.body
        node.decorator_list = [
            d for d in node.decorator_list if directive_name(d) not in DIRECTIVE_NAMES
        ]
        text = doc.render()
        if text is not None and doc.sections:
            insert_docstring(node, text, _INDENT * (definition.depth + 1))

    def _strip_imports(self, tree: ast.Module) -> None:
        """Remove imports of the directives and marker from this package.

        A plain ``import explained`` goes too once nothing in the module
        refers to the package any more.
        """
        consumed = DIRECTIVE_NAMES | {self.marker}
        body = []
        for stmt in tree.body:
            if isinstance(stmt, ast.ImportFrom) and (stmt.module or "").split(".")[0] == _PACKAGE:
                stmt.names = [alias for alias in stmt.names if alias.name not in consumed]
                if not stmt.names:
                    continue
            body.append(stmt)
        tree.body = body

        used = {node.id for node in ast.walk(tree) if isinstance(node, ast.Name)}
        body = []
        for stmt in tree.body:
            if isinstance(stmt, ast.Import):
                stmt.names = [
                    alias for alias in stmt.names
                    if alias.name.split(".")[0] != _PACKAGE
                    or (alias.asname or _PACKAGE) in used
                ]
                if not stmt.names:
                    continue
            body.append(stmt)
        tree.body = body
