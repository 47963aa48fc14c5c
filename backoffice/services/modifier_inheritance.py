"""Resolução de herança de grupos de modificadores.

Um item pode receber grupos de duas fontes: seleção explícita no próprio
item e grupos ligados à categoria do item (herdáveis). A regra:

- toda seleção explícita entra com ``inherited=False``;
- se a herança estiver ligada, cada grupo da categoria que ainda não foi
  selecionado explicitamente entra com ``inherited=True``;
- com a herança desligada os grupos da categoria são ignorados.

A saída mantém a ordem de inserção: explícitos primeiro (na ordem do
chamador), depois herdados (na ordem das ligações da categoria). Funções
puras, sem acesso ao banco.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Iterable


@dataclass(frozen=True)
class ResolvedAssignment:
    group_code: str
    inherited: bool


def resolve_assignments(
    explicit_group_codes: Iterable[str],
    category_group_codes: Iterable[str],
    inherit_enabled: bool,
) -> list[ResolvedAssignment]:
    resolved: dict[str, bool] = {}

    for code in explicit_group_codes:
        resolved.setdefault(code, False)

    if inherit_enabled:
        for code in category_group_codes:
            resolved.setdefault(code, True)

    return [ResolvedAssignment(group_code=code, inherited=inherited) for code, inherited in resolved.items()]


def explicit_codes(assignments: Iterable[ResolvedAssignment]) -> list[str]:
    return [assignment.group_code for assignment in assignments if not assignment.inherited]


def inherited_codes(assignments: Iterable[ResolvedAssignment]) -> list[str]:
    return [assignment.group_code for assignment in assignments if assignment.inherited]
