"""dockpanel: container lifecycle service behind the control panel."""

__version__ = "0.3.0"
