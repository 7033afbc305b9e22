from typing import Annotated

from fastapi import Depends
from sqlalchemy.orm import Session

from doorlist.db import get_db
from doorlist.notifications.base import EmailSender, SmsSender
from doorlist.notifications.factory import get_email_sender, get_sms_sender
from doorlist.services.policy import (
    CredentialPolicy,
    LifecyclePolicy,
    credential_policy,
    lifecycle_policy,
)

DBSession = Annotated[Session, Depends(get_db)]
Lifecycle = Annotated[LifecyclePolicy, Depends(lifecycle_policy)]
Credentials = Annotated[CredentialPolicy, Depends(credential_policy)]
Mailer = Annotated[EmailSender, Depends(get_email_sender)]
Texter = Annotated[SmsSender, Depends(get_sms_sender)]
