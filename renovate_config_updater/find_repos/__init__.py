from .config_probe import ConfigProbe
from .org_crawler import OrgCrawler

__all__ = ["ConfigProbe", "OrgCrawler"]
