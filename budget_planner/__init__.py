"""Top-level package for the budget planner.

The primary modules are:

* ``models`` - line items, budgets and frequency normalisation
* ``budget_ops`` - add/update/delete/reorder operations used by the UI
* ``summary`` and ``projection`` - cash flow, net worth and runway
* ``reconcile`` - merges sparse field patches into a budget
* ``prices`` - live crypto/stock price refresh
* ``storage`` - JSON snapshots and the budget repository
* ``dashboard`` - a Streamlit app that ties everything together
* ``server`` - an MCP tool server

To run the dashboard from the command line you can execute:

```bash
streamlit run budget_planner/dashboard.py
```

``dashboard`` and ``server`` are not imported here, so the core can be
used without Streamlit or the MCP SDK being loaded.
"""

from . import budget_ops  # noqa: F401  # re-exported for convenience
from . import models  # noqa: F401
from . import projection  # noqa: F401
from . import reconcile  # noqa: F401
from . import summary  # noqa: F401

__all__ = ["budget_ops", "models", "projection", "reconcile", "summary"]
