"""
Run any service script by its action name, e.g. `python -m servicectl start nginx`.

Usage: servicectl [options] ACTION SERVICE...

Actions: status, start, stop, restart
"""

import sys
from typing import List, Optional

from docopt import docopt

from .scripts import service  # noqa: F401
from .scripts.utils import error, OPTIONS, SCRIPTS


def main(argv: Optional[List[str]] = None):
    opts = docopt(__doc__ + OPTIONS, argv)
    action = opts.pop("ACTION")
    try:
        script = SCRIPTS[action]
    except KeyError:
        error("Unknown action {!r}, must be one of: {}".format(action, ", ".join(sorted(SCRIPTS))),
              exit=2)
    return script(opts)


if __name__ == "__main__":
    main(sys.argv[1:])
