"""
Basic test to verify the testing framework is working.
"""

from index_watcher.config.models import WatcherConfig


def test_watcher_config_creation():
    """Test that WatcherConfig can be created with defaults."""
    config = WatcherConfig()

    assert config.stock.code == "sh000001"
    assert config.stock.threshold == 0.8
    assert config.monitor.interval == 30.0
    assert config.wechat.webhook_url == ""
    assert config.display_name == "上证指数"


def test_watcher_config_validation():
    """Test that WatcherConfig validates input parameters."""
    config = WatcherConfig(
        stock={"code": "sz399006", "threshold": 1.5},
        wechat={"webhook_url": "https://qyapi.weixin.qq.com/cgi-bin/webhook/send?key=abc"},
        monitor={"interval": "1m"},
    )

    assert config.stock.code == "sz399006"
    assert config.stock.threshold == 1.5
    assert config.monitor.interval == 60.0
    assert config.display_name == "创业板指"
