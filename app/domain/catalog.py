"""
Account catalog - read-mostly index over the chart of accounts.
"""

from collections.abc import Iterable, Iterator, Mapping

from .entities import Account
from .exceptions import CatalogCycleError
from .value_objects import AccountCategory, AccountType


class AccountCatalog(Mapping):
    """Immutable id -> Account index with hierarchy helpers."""

    def __init__(self, accounts: Iterable[Account]):
        self._by_id: dict[str, Account] = {}
        for account in accounts:
            if account.id in self._by_id:
                raise ValueError(f"Duplicate account id {account.id}")
            self._by_id[account.id] = account
        self._children: dict[str, list[str]] = {}
        for account in self._by_id.values():
            if account.parent_id is not None:
                self._children.setdefault(account.parent_id, []).append(account.id)
        self._check_hierarchy()

    @classmethod
    def coerce(cls, accounts) -> "AccountCatalog":
        if isinstance(accounts, AccountCatalog):
            return accounts
        if isinstance(accounts, Mapping):
            return cls(accounts.values())
        return cls(accounts)

    def __getitem__(self, account_id: str) -> Account:
        return self._by_id[account_id]

    def __iter__(self) -> Iterator[str]:
        return iter(self._by_id)

    def __len__(self) -> int:
        return len(self._by_id)

    def accounts(self) -> list[Account]:
        return list(self._by_id.values())

    def by_code(self, code: str) -> Account | None:
        for account in self._by_id.values():
            if account.code == code:
                return account
        return None

    def of_type(self, account_type: AccountType) -> list[Account]:
        return [a for a in self._by_id.values() if a.account_type == account_type]

    def of_category(self, category: AccountCategory) -> list[Account]:
        return [a for a in self._by_id.values() if a.category == category]

    def children(self, account_id: str) -> list[Account]:
        return [self._by_id[i] for i in self._children.get(account_id, [])]

    def descendants(self, account_id: str) -> list[Account]:
        """All accounts below ``account_id`` in the hierarchy (depth-first)."""
        result: list[Account] = []
        stack = list(reversed(self._children.get(account_id, [])))
        while stack:
            current = stack.pop()
            result.append(self._by_id[current])
            stack.extend(reversed(self._children.get(current, [])))
        return result

    def _check_hierarchy(self) -> None:
        for account in self._by_id.values():
            seen = {account.id}
            parent_id = account.parent_id
            while parent_id is not None:
                if parent_id in seen:
                    raise CatalogCycleError(account.id)
                seen.add(parent_id)
                parent = self._by_id.get(parent_id)
                if parent is None:
                    # Dangling parents are tolerated; the chain simply ends.
                    break
                parent_id = parent.parent_id
