"""
Trim keyword injection into marketplace search URLs.

Each marketplace encodes its free-text filter differently, so every country
maps to a mutator that knows the destination URL syntax.
"""

from __future__ import annotations

import re
from abc import ABC, abstractmethod
from urllib.parse import quote


def _encode(value: str) -> str:
    return quote(value, safe="!*'()")


def _param_regex(param: str) -> re.Pattern[str]:
    return re.compile(r"(?<=[?&])" + re.escape(param) + r"=[^&#]*")


class TrimMutator(ABC):
    """
    Rewrites a search URL so the marketplace narrows results to a trim keyword.
    """

    def apply(self, url: str, trim_text: str | None) -> str:
        trim = (trim_text or "").strip()
        if not trim:
            return url
        return self.mutate(url, trim)

    @abstractmethod
    def mutate(self, url: str, trim: str) -> str:
        """
        Encode a non-empty trim keyword into `url`.
        """


class QueryParamTrimMutator(TrimMutator):
    """
    Replace an existing parameter, else insert it before an anchor parameter, else append.
    """

    def __init__(self, *, param: str, anchor: str | None = None) -> None:
        self.param = param
        self.anchor = anchor

    def mutate(self, url: str, trim: str) -> str:
        assignment = f"{self.param}={_encode(trim)}"
        existing = _param_regex(self.param)
        if existing.search(url):
            return existing.sub(lambda _: assignment, url, count=1)

        if self.anchor:
            marker = f"&{self.anchor}="
            index = url.find(marker)
            if index >= 0:
                return f"{url[:index]}&{assignment}{url[index:]}"

        base, hash_mark, fragment = url.partition("#")
        separator = "&" if "?" in base else "?"
        return f"{base}{separator}{assignment}{hash_mark}{fragment}"


class AppendTrimMutator(QueryParamTrimMutator):
    """
    Replace an existing parameter value, else append it with the right separator.
    """

    def __init__(self, *, param: str) -> None:
        super().__init__(param=param, anchor=None)


class FragmentTrimMutator(TrimMutator):
    """
    Encode the trim as a leading `key:value|` segment of the URL fragment.

    URLs without a fragment are returned unchanged.
    """

    def __init__(self, *, key: str = "q", lowercase: bool = True) -> None:
        self.key = key
        self.lowercase = lowercase

    def mutate(self, url: str, trim: str) -> str:
        base, hash_mark, fragment = url.partition("#")
        if not hash_mark:
            return url

        value = _encode(trim.lower() if self.lowercase else trim)
        segment = f"{self.key}:{value}"
        leading = re.compile(r"^" + re.escape(self.key) + r":[^|]*")
        if leading.match(fragment):
            fragment = leading.sub(lambda _: segment, fragment, count=1)
        else:
            fragment = f"{segment}|{fragment}"
        return f"{base}#{fragment}"


COUNTRY_MUTATORS: dict[str, TrimMutator] = {
    "FR": QueryParamTrimMutator(param="text", anchor="kst"),
    "NL": FragmentTrimMutator(key="q"),
    "DK": AppendTrimMutator(param="free"),
}


def apply_trim(url: str, trim_text: str | None, country: str | None) -> str:
    """
    Narrow `url` to `trim_text` using the convention of the country's marketplace.

    Unknown countries and empty trims leave the URL unchanged.
    """

    mutator = COUNTRY_MUTATORS.get((country or "").strip().upper())
    if mutator is None:
        return url
    return mutator.apply(url, trim_text)
