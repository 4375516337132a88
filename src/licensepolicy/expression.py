# Copyright 2026 Google LLC
#
# Licensed under the Apache License, Version 2.0 (the "License");
# you may not use this file except in compliance with the License.
# You may obtain a copy of the License at
#
#     http://www.apache.org/licenses/LICENSE-2.0
#
# Unless required by applicable law or agreed to in writing, software
# distributed under the License is distributed on an "AS IS" BASIS,
# WITHOUT WARRANTIES OR CONDITIONS OF ANY KIND, either express or implied.
# See the License for the specific language governing permissions and
# limitations under the License.
#
# SPDX-License-Identifier: Apache-2.0

r"""License expression parser with policy resolution.

Parses SPDX-style license expressions such as
``Apache-2.0 AND (MIT OR GPL-2.0-only)`` into a binary tree and resolves
every leaf against a :class:`~licensepolicy.database.PolicyDatabase` as
the tree is built.  Each compound node's verdict is computed once, when
the node is finalized, from its two children (see
:func:`licensepolicy.algebra.combine`).

Grammar (as supported)::

    expression = operand [conjunction operand]
    operand    = "(" expression ")" / license-id ["WITH" exception-id]
    conjunction = "AND" / "OR"

Limitations, kept on purpose::

    ┌──────────────────────┬───────────────────────────────────────────────┐
    │ Input                │ Behaviour                                     │
    ├──────────────────────┼───────────────────────────────────────────────┤
    │ A OR B AND C         │ One conjunction per nesting level: the later  │
    │                      │ operator and operand overwrite the earlier    │
    │                      │ ones, giving A AND C. Use parentheses.        │
    ├──────────────────────┼───────────────────────────────────────────────┤
    │ MIT                  │ A lone operand has no conjunction: the result │
    │                      │ is UNDEFINED and an error is reported.        │
    ├──────────────────────┼───────────────────────────────────────────────┤
    │ GPL-2.0 WITH X       │ The exception is recorded, never evaluated.   │
    ├──────────────────────┼───────────────────────────────────────────────┤
    │ Apache-2.0+          │ Looked up as written, "+" included; the flag  │
    │                      │ ``has_plus_suffix`` is set.                   │
    └──────────────────────┴───────────────────────────────────────────────┘

Usage::

    from licensepolicy.database import get_policy_database
    from licensepolicy.expression import parse_expression

    parsed = parse_expression(get_policy_database(), 'Apache-2.0 AND (MIT OR GPL-2.0-only)')
    parsed.usage_policy  # UsagePolicy.ALLOW
    parsed.root.conjunction  # Conjunction.AND
"""

from __future__ import annotations

from collections.abc import Iterator
from dataclasses import dataclass, field

from licensepolicy._types import Conjunction, LicensePolicyError, UsagePolicy
from licensepolicy.algebra import combine
from licensepolicy.database import PolicyDatabase
from licensepolicy.logging import get_logger
from licensepolicy.records import PolicyRecord

__all__ = [
    'MAX_DEPTH',
    'CompoundExpression',
    'ExpressionError',
    'ExpressionNode',
    'ParsedExpression',
    'SimpleExpression',
    'leaves',
    'parse_expression',
    'parse_tokens',
    'tokenize',
]

logger = get_logger(__name__)

LEFT_PAREN = '('
RIGHT_PAREN = ')'
PLUS = '+'
WITH = 'WITH'
_CONJUNCTIONS = {'AND': Conjunction.AND, 'OR': Conjunction.OR}

# Deepest parenthesis nesting accepted before a subtree is given up on.
MAX_DEPTH = 64


# ---------------------------------------------------------------------------
# Errors
# ---------------------------------------------------------------------------


class ExpressionError(LicensePolicyError, ValueError):
    """A license expression that could not be resolved cleanly.

    Attributes:
        expression: The original expression string.
        index: Token index where the problem was detected.
        detail: Human-readable description of the problem.
    """

    def __init__(self, expression: str, index: int, detail: str) -> None:
        self.expression = expression
        self.index = index
        self.detail = detail
        super().__init__(f'invalid license expression at token {index}: {detail}\n  {expression}')


# ---------------------------------------------------------------------------
# Tree
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class SimpleExpression:
    """A single license identifier (leaf).

    Attributes:
        token: The identifier exactly as written, ``+`` included.
        has_plus_suffix: ``True`` if the token ends with ``+``.
        resolved: Verdict from the policy database.
        record: The matching policy record, if any.
    """

    token: str
    has_plus_suffix: bool
    resolved: UsagePolicy
    record: PolicyRecord | None = None

    def __str__(self) -> str:
        """Return the identifier as written."""
        return self.token


@dataclass(frozen=True)
class CompoundExpression:
    """Two operands joined by a conjunction.

    An operand that never appeared is ``None`` and counts as
    ``UNDEFINED``.  An exception is ``""`` when ``WITH`` appeared
    without an exception id after it.

    Attributes:
        left: Left operand.
        right: Right operand.
        conjunction: ``AND``, ``OR`` or ``NONE``.
        left_exception: Exception id attached to the left operand.
        right_exception: Exception id attached to the right operand.
        resolved: Verdict combined from both operands.
    """

    left: ExpressionNode | None
    right: ExpressionNode | None
    conjunction: Conjunction
    left_exception: str | None = None
    right_exception: str | None = None
    resolved: UsagePolicy = UsagePolicy.UNDEFINED

    def __str__(self) -> str:
        """Render the node back to expression text, parenthesized."""
        parts = [_operand_text(self.left, self.left_exception)]
        if self.conjunction is not Conjunction.NONE:
            parts.append(self.conjunction.value)
            parts.append(_operand_text(self.right, self.right_exception))
        return f'({" ".join(p for p in parts if p)})'


ExpressionNode = SimpleExpression | CompoundExpression


def _operand_text(node: ExpressionNode | None, exception: str | None) -> str:
    text = str(node) if node is not None else ''
    if exception is not None:
        text = f'{text} {WITH} {exception}'.strip()
    return text


def _policy_of(node: ExpressionNode | None) -> UsagePolicy:
    return node.resolved if node is not None else UsagePolicy.UNDEFINED


def leaves(node: ExpressionNode | None) -> Iterator[SimpleExpression]:
    """Yield the identifiers of a tree, left to right."""
    if isinstance(node, SimpleExpression):
        yield node
    elif isinstance(node, CompoundExpression):
        yield from leaves(node.left)
        yield from leaves(node.right)


@dataclass(frozen=True)
class ParsedExpression:
    """Result of :func:`parse_expression`.

    Attributes:
        expression: The raw expression string.
        tokens: Its tokens.
        root: Root of the expression tree.
        error: First problem found while parsing, if any.
    """

    expression: str
    tokens: tuple[str, ...]
    root: CompoundExpression
    error: ExpressionError | None = field(default=None, compare=False)

    @property
    def ok(self) -> bool:
        """``True`` if the expression parsed without error."""
        return self.error is None

    @property
    def usage_policy(self) -> UsagePolicy:
        """Overall verdict: the root's, or ``UNDEFINED`` on error."""
        if self.error is not None:
            return UsagePolicy.UNDEFINED
        return self.root.resolved

    def raise_for_error(self) -> None:
        """Raise the captured :class:`ExpressionError`, if any."""
        if self.error is not None:
            raise self.error


# ---------------------------------------------------------------------------
# Tokenizer
# ---------------------------------------------------------------------------


def tokenize(raw: str) -> list[str]:
    """Split a license expression into tokens.

    Parentheses always become tokens of their own, whatever they are
    glued to; any run of whitespace (spaces, tabs, newlines) separates
    the rest.

    Examples::

        >>> tokenize('Apache-2.0 AND(MIT OR\\tGPL-2.0-only)')
        ['Apache-2.0', 'AND', '(', 'MIT', 'OR', 'GPL-2.0-only', ')']
    """
    spaced = raw.replace(LEFT_PAREN, f' {LEFT_PAREN} ').replace(RIGHT_PAREN, f' {RIGHT_PAREN} ')
    return spaced.split()


# ---------------------------------------------------------------------------
# Recursive descent parser
# ---------------------------------------------------------------------------


@dataclass
class _Operands:
    """Operands collected for the node currently being parsed."""

    left: ExpressionNode | None = None
    right: ExpressionNode | None = None
    conjunction: Conjunction = Conjunction.NONE
    left_exception: str | None = None
    right_exception: str | None = None

    @property
    def on_right(self) -> bool:
        return self.conjunction is not Conjunction.NONE

    def attach(self, node: ExpressionNode) -> None:
        if self.on_right:
            self.right = node
        else:
            self.left = node

    def mark_with(self) -> None:
        if self.on_right:
            self.right_exception = ''
        else:
            self.left_exception = ''

    def awaiting_exception(self) -> bool:
        return (self.right_exception if self.on_right else self.left_exception) is not None

    def set_exception(self, token: str) -> None:
        if self.on_right:
            self.right_exception = token
        else:
            self.left_exception = token


def _finalize(
    operands: _Operands,
    expression: str,
    index: int,
    subtree_error: ExpressionError | None,
) -> tuple[CompoundExpression, ExpressionError | None]:
    """Resolve the node's verdict from its finished operands.

    A node with an error anywhere in its subtree resolves to
    ``UNDEFINED``.  Returns the first error: *subtree_error* if set,
    else a missing-conjunction error for this node, if any.
    """
    left_policy = _policy_of(operands.left)
    right_policy = _policy_of(operands.right)
    resolved = combine(left_policy, right_policy, operands.conjunction)
    error = subtree_error
    if operands.conjunction is Conjunction.NONE:
        error = error or ExpressionError(expression, index, 'missing conjunction: expected AND or OR between two operands')
    if error is not None:
        resolved = UsagePolicy.UNDEFINED
    node = CompoundExpression(
        left=operands.left,
        right=operands.right,
        conjunction=operands.conjunction,
        left_exception=operands.left_exception,
        right_exception=operands.right_exception,
        resolved=resolved,
    )
    logger.debug(
        'expression_node_finalized',
        left=str(operands.left) if operands.left is not None else None,
        left_policy=left_policy,
        conjunction=operands.conjunction,
        right=str(operands.right) if operands.right is not None else None,
        right_policy=right_policy,
        resolved=resolved,
    )
    return node, error


def _skip_group(tokens: list[str], index: int) -> int:
    """Return the index just past the ``)`` closing the group opened before *index*."""
    depth = 1
    while index < len(tokens):
        if tokens[index] == LEFT_PAREN:
            depth += 1
        elif tokens[index] == RIGHT_PAREN:
            depth -= 1
            if depth == 0:
                return index + 1
        index += 1
    return index


def parse_tokens(
    db: PolicyDatabase,
    tokens: list[str],
    index: int = 0,
    *,
    depth: int = 0,
    expression: str | None = None,
) -> tuple[CompoundExpression, int, ExpressionError | None]:
    """Parse one nesting level of *tokens*, starting at *index*.

    A nested call (``depth > 0``) consumes its closing ``)`` and returns
    the index just past it, which the caller resumes from.

    Args:
        db: Database used to resolve every identifier.
        tokens: Output of :func:`tokenize`.
        index: Cursor into *tokens*.
        depth: Current parenthesis nesting.
        expression: Original text, for error messages.

    Returns:
        ``(node, next_index, error)``; *error* is the first problem found
        in this subtree, or ``None``.
    """
    text = expression if expression is not None else ' '.join(tokens)
    operands = _Operands()
    error: ExpressionError | None = None

    while index < len(tokens):
        token = tokens[index]

        if token == LEFT_PAREN:
            if depth + 1 > MAX_DEPTH:
                error = error or ExpressionError(text, index, f'nesting deeper than {MAX_DEPTH} levels')
                child = CompoundExpression(left=None, right=None, conjunction=Conjunction.NONE)
                index = _skip_group(tokens, index + 1)
            else:
                logger.debug('expression_group_open', index=index, depth=depth + 1)
                child, index, child_error = parse_tokens(db, tokens, index + 1, depth=depth + 1, expression=text)
                error = error or child_error
            operands.attach(child)
            continue

        if token == RIGHT_PAREN:
            if depth == 0:
                error = error or ExpressionError(text, index, "unbalanced ')'")
                break
            node, error = _finalize(operands, text, index, error)
            return node, index + 1, error

        if token in _CONJUNCTIONS:
            logger.debug('expression_conjunction', index=index, conjunction=token)
            operands.conjunction = _CONJUNCTIONS[token]
        elif token == WITH:
            operands.mark_with()
        elif operands.awaiting_exception():
            operands.set_exception(token)
        else:
            match = db.find_by_id(token)
            logger.debug('expression_identifier', index=index, token=token, resolved=match.usage_policy)
            operands.attach(
                SimpleExpression(
                    token=token,
                    has_plus_suffix=token.endswith(PLUS),
                    resolved=match.usage_policy,
                    record=match.record,
                )
            )
        index += 1

    if depth > 0:
        error = error or ExpressionError(text, index, "missing ')'")
    node, error = _finalize(operands, text, index, error)
    return node, index, error


def parse_expression(db: PolicyDatabase, expression: str) -> ParsedExpression:
    """Parse *expression* and resolve its usage policy against *db*.

    Problems never raise: they are returned on
    :attr:`ParsedExpression.error` and force the overall verdict to
    ``UNDEFINED``.  Call :meth:`ParsedExpression.raise_for_error` to
    turn them into an exception.

    Args:
        db: Policy database to resolve identifiers against.
        expression: License expression, e.g. ``"MIT OR Apache-2.0"``.

    Returns:
        The parsed tree, its verdict and any error.
    """
    tokens = tokenize(expression)
    logger.debug('expression_tokenized', expression=expression, tokens=tokens)
    if not tokens:
        root = CompoundExpression(left=None, right=None, conjunction=Conjunction.NONE)
        error: ExpressionError | None = ExpressionError(expression, 0, 'empty expression')
    else:
        root, _, error = parse_tokens(db, tokens, expression=expression)
    if error is not None:
        logger.warning('expression_invalid', expression=expression, detail=error.detail, index=error.index)
    return ParsedExpression(expression=expression, tokens=tuple(tokens), root=root, error=error)
