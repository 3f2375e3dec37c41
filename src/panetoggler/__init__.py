"""PaneToggler - 按名称打开/关闭/切换 tmux 命令 pane"""

__version__ = "0.1.0"
