"""Built-in diagnostic tools."""

from typing import List

from toolhost.tools.base import Param, ToolContext, ToolUnit


def echo(ctx: ToolContext, Msg: str) -> str:
    return Msg


def get_toolhost_info(ctx: ToolContext) -> dict:
    return {
        "name": ctx.server_name,
        "version": ctx.server_version,
        "settings": sorted(ctx.settings),
    }


def tools() -> List[ToolUnit]:
    return [
        ToolUnit(
            name="Echo",
            handler=echo,
            params=(Param("Msg", str, required=True, description="Text to send back"),),
            description="Return the given message unchanged.",
        ),
        ToolUnit(
            name="Get-ToolHostInfo",
            handler=get_toolhost_info,
            description="Show the server name, version and configured setting keys.",
        ),
    ]
