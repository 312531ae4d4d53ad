"""Plain keyword lists and source registry for funding-call extraction."""

from __future__ import annotations
from typing import List, Tuple


def _keywords(block: str) -> List[str]:
    """Return unique, ordered keywords from a newline-separated block."""
    seen = []
    for line in block.strip().splitlines():
        term = line.strip()
        if not term:
            continue
        if term not in seen:
            seen.append(term)
    return seen


def _pairs(block: str) -> List[Tuple[str, str]]:
    """Return ordered ``fragment -> code`` pairs from ``fragment code`` lines."""
    pairs: List[Tuple[str, str]] = []
    for line in _keywords(block):
        fragment, code = line.split()
        pairs.append((fragment, code))
    return pairs


# Pages polled on every run, in polling order.
SOURCE_URLS: List[str] = _keywords(
    """
    https://dst.gov.in/call-for-proposals
    https://www.dbtindia.gov.in/latest-announcement
    https://birac.nic.in/cfp.php
    https://www.icmr.gov.in/whatnew.html
    https://serb.gov.in/page/show/63
    https://www.icssr.org/funding
    https://www.cefipra.org/ResearchProjects
    https://www.igstc.org/
    https://tdb.gov.in/
    https://www.ugc.ac.in/
    https://sparc.iitkgp.ac.in/
    https://www.nasi.org.in/awards.htm
    https://insaindia.res.in/
    https://vit.ac.in/research/call-for-proposals
    """
)

# Domain fragment -> agency code. First match wins, so order is significant.
AGENCY_DOMAINS: List[Tuple[str, str]] = _pairs(
    """
    dst.gov.in DST
    dbtindia.gov.in DBT
    birac.nic.in BIRAC
    icmr.gov.in ICMR
    serb.gov.in SERB
    icssr.org ICSSR
    cefipra.org CEFIPRA
    igstc.org IGSTC
    tdb.gov.in TDB
    ugc.ac.in UGC
    sparc.iitkgp.ac.in SPARC
    nasi.org.in NASI
    insaindia.res.in INSA
    """
)

# Sites that republish calls from many agencies.
AGGREGATOR_DOMAINS: List[str] = _keywords(
    """
    vit.ac.in
    """
)

AGENCY_CODES: List[str] = [code for _, code in AGENCY_DOMAINS]

TITLE_KEYWORDS: List[str] = _keywords(
    """
    call
    proposal
    funding
    grant
    scheme
    research
    phd
    postdoc
    scientist
    startup
    fellowship
    application
    submission
    deadline
    award
    competition
    opportunity
    invitation
    tender
    cfp
    eoi
    """
)

ROLLING_TERMS: List[str] = _keywords(
    """
    rolling
    ongoing
    continuous
    open
    throughout
    year
    """
)

DEADLINE_TERMS: List[str] = _keywords(
    """
    deadline
    due
    submit
    submission
    last date
    closing date
    """
)

LINK_BLOCKED_PATHS: List[str] = _keywords(
    """
    /contact
    /about
    /login
    /sitemap
    """
)

LINK_BLOCKED_EXTENSIONS: List[str] = _keywords(
    """
    .jpg
    .jpeg
    .png
    .gif
    .svg
    .webp
    .ico
    .doc
    .docx
    .xls
    .xlsx
    .csv
    """
)

LINK_BLOCKED_DOMAINS: List[str] = _keywords(
    """
    facebook.com
    twitter.com
    x.com
    linkedin.com
    instagram.com
    youtube.com
    wa.me
    whatsapp.com
    """
)

LINK_BLOCKED_SCHEMES: List[str] = _keywords(
    """
    mailto:
    tel:
    javascript:
    """
)

# Second-level suffixes under which the registrable domain keeps three labels.
MULTI_PART_SUFFIXES: List[str] = _keywords(
    """
    gov.in
    nic.in
    ac.in
    res.in
    org.in
    co.in
    net.in
    ernet.in
    edu.in
    """
)
