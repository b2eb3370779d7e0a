"""IBM Cloud API helpers.

Plain-data functions shared by the web API, the MCP server and the CLI.
Every public function returns dicts / lists, never framework responses.

The module also satisfies the cluster-source interface expected by
:func:`roks_advisor.services.cluster_analyzer.analyze_all_clusters`
(``list_clusters`` and ``get_cluster_details``).
"""

import time as time  # noqa: F401  # re-export for mock patching

import requests as requests  # noqa: F401  # re-export for mock patching

# -- Auth --------------------------------------------------------------------
from roks_advisor.ibm_api._auth import (  # noqa: F401
    IAM_GRANT_TYPE,
    NOT_CONFIGURED_MESSAGE,
    CloudNotConfiguredError,
    _get_headers,
    get_access_token,
    is_configured,
)

# -- Caches (exposed for test fixtures) -------------------------------------
from roks_advisor.ibm_api._cache import (  # noqa: F401
    _cache_set,
    _cached,
    _cluster_cache,
    _token_cache,
    clear_caches,
)

# -- Clusters ----------------------------------------------------------------
from roks_advisor.ibm_api.clusters import (  # noqa: F401
    get_cluster_details,
    list_clusters,
)
