from . import feed, spec
