from . import commands, events
