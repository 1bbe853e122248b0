from .account import Account
from .pool_option import PoolOption
from .draft import Draft
from .draft_pick import DraftPick, SKIPPED_OPTION_ID
from .draft_timer import DraftTimer
from .draft_settings import DraftSettings
