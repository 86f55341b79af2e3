from rich.text import Text

__version__ = "0.1.0"

APP_DESCRIPTION = "Re-sign xcarchive and ipa uploads with the identities on this Mac"


def get_banner_text() -> Text:
    return Text("ArchiveSign", style="bold green")
