"""
Machine à états du checkout: identity -> method -> finish.

- Transitions linéaires uniquement (avant/arrière, jamais de saut).
- Chaque opération retourne un CheckoutResult; les échecs attendus ne lèvent pas
  d'exception et ne font jamais avancer l'état.
- Chemin carte: aucune transaction n'est écrite ici, c'est le rôle exclusif de
  la réconciliation au retour de Stripe.
- Chemin virement: la transaction 'manual_pending' est créée directement à la
  finalisation (pas de redirection).
"""
from typing import Any, Dict, Optional
import logging

from email_validator import validate_email, EmailNotValidError

from photomarket.auth import service as auth_service
from photomarket.cart.aggregator import total_for_group
from photomarket.cart.models import CartGroup
from photomarket.config import CHECKOUT_UI_MODE
from photomarket.payments import repository as payments_repo
from photomarket.payments import stripe_client
from photomarket.payments.models import Transaction, TransactionStatus
from photomarket.pricing.engine import commission_for
from photomarket.session import SessionHandle
from photomarket.users.models import SellerPaymentProfile
from .models import (
    AuthMode,
    CheckoutResult,
    CheckoutSession,
    CheckoutStep,
    ErrorKind,
    IdentityForm,
    PaymentMethod,
    STEP_ORDER,
)

logger = logging.getLogger(__name__)

def _valid_email(email: Optional[str]) -> Optional[str]:
    try:
        return validate_email((email or "").strip(), check_deliverability=False).normalized
    except EmailNotValidError:
        return None

# module photomarket.checkout.state
class CheckoutMachine:
    def __init__(
        self,
        handle: SessionHandle,
        session: Optional[CheckoutSession] = None,
        ui_mode: str = CHECKOUT_UI_MODE,
    ):
        self.handle = handle
        self.session = session
        self.ui_mode = ui_mode

    @property
    def step(self) -> Optional[CheckoutStep]:
        return self.session.step if self.session else None

    def _require_session(self) -> Optional[CheckoutResult]:
        if self.session is None:
            return CheckoutResult.fail(ErrorKind.VALIDATION, "Aucun paiement en cours")
        if self.session.completed:
            return CheckoutResult.fail(ErrorKind.VALIDATION, "Paiement déjà finalisé")
        return None

    def _check_group(self, group: Optional[CartGroup]) -> Optional[CheckoutResult]:
        if group is None or not group.items or group.album_id != self.session.album_id:
            return CheckoutResult.fail(ErrorKind.VALIDATION, "Panier vide pour cet album")
        return None

    def _snapshot(self, **extra: Any) -> Dict[str, Any]:
        data = {"session": self.session.to_public() if self.session else None}
        data.update(extra)
        return data

    def describe(self, group: Optional[CartGroup], seller: Optional[SellerPaymentProfile]) -> Dict[str, Any]:
        """État courant pour l'affichage: étape, total du groupe (lecture seule), moyens disponibles."""
        methods = []
        if seller and seller.accepts_card:
            methods.append(PaymentMethod.CARD.value)
        if seller and seller.bank_transfer_enabled:
            methods.append(PaymentMethod.BANK_TRANSFER.value)
        return self._snapshot(
            total=total_for_group(group) if group else 0.0,
            item_count=len(group.items) if group else 0,
            available_methods=methods,
            can_skip_identity=self.handle.is_authenticated,
        )

    async def start(self, group: Optional[CartGroup]) -> CheckoutResult:
        """Ouvre un checkout pour un groupe (un album). Pré-remplit l'identité si connecté."""
        if group is None or not group.items:
            return CheckoutResult.fail(ErrorKind.VALIDATION, "Panier vide pour cet album")
        await self.handle.wait_settled()
        self.session = CheckoutSession(album_id=group.album_id, item_ids=group.item_ids)
        user = self.handle.user
        if user:
            self.session.full_name = user.get("full_name")
            self.session.email = user.get("email")
        return CheckoutResult.ok(**self._snapshot(
            total=total_for_group(group),
            can_skip_identity=self.handle.is_authenticated,
        ))

    async def submit_identity(self, form: IdentityForm) -> CheckoutResult:
        error = self._require_session()
        if error:
            return error
        if self.session.step != CheckoutStep.IDENTITY:
            return CheckoutResult.fail(ErrorKind.VALIDATION, "Étape d'identification déjà validée")

        await self.handle.wait_settled()
        if self.handle.is_authenticated:
            self.session.step = CheckoutStep.METHOD
            return CheckoutResult.ok(**self._snapshot())

        email = _valid_email(form.email)
        full_name = (form.full_name or "").strip()
        if not email or not form.password:
            return CheckoutResult.fail(ErrorKind.VALIDATION, "Email et mot de passe requis")
        if form.auth_mode == AuthMode.SIGNUP and not full_name:
            return CheckoutResult.fail(ErrorKind.VALIDATION, "Nom complet requis")

        self.session.auth_mode = form.auth_mode
        try:
            if form.auth_mode == AuthMode.SIGNUP:
                res = auth_service.signup(email, form.password, full_name, role="buyer")
            else:
                res = auth_service.login(email, form.password)
        except Exception as e:
            logger.exception("checkout.identity failed mode=%s", form.auth_mode.value)
            return CheckoutResult.fail(ErrorKind.AUTH, str(e))
        if not res.success:
            return CheckoutResult.fail(ErrorKind.AUTH, res.error or "Identifiants invalides")

        extra: Dict[str, Any] = {}
        if res.user and res.access_token:
            self.handle.sign_in(res.user)
            extra["access_token"] = res.access_token
            self.session.full_name = res.user.get("full_name") or full_name or None
            self.session.email = res.user.get("email") or email
        else:
            # Inscription avec confirmation d'email: on poursuit en invité
            self.session.full_name = full_name or None
            self.session.email = email
            extra["notice"] = res.error
        self.session.step = CheckoutStep.METHOD
        return CheckoutResult.ok(**self._snapshot(**extra))

    async def select_method(
        self,
        method: PaymentMethod,
        group: Optional[CartGroup],
        seller: Optional[SellerPaymentProfile],
        discount_code: Optional[str] = None,
    ) -> CheckoutResult:
        error = self._require_session() or self._check_group(group)
        if error:
            return error
        if self.session.step != CheckoutStep.METHOD:
            return CheckoutResult.fail(ErrorKind.VALIDATION, "Choix du paiement impossible à cette étape")
        if seller is None:
            return CheckoutResult.fail(ErrorKind.SETTLEMENT, "Photographe introuvable")

        total = total_for_group(group)
        commission = commission_for(total)

        if method == PaymentMethod.BANK_TRANSFER:
            if not seller.bank_transfer_enabled:
                return CheckoutResult.fail(ErrorKind.VALIDATION, "Virement non proposé par ce photographe")
            self.session.item_ids = group.item_ids
            self.session.method = method
            self.session.step = CheckoutStep.FINISH
            return CheckoutResult.ok(**self._snapshot(total=total, bank_instructions=seller.bank_instructions()))

        if not seller.accepts_card:
            return CheckoutResult.fail(ErrorKind.SETTLEMENT, "Ce photographe n'a pas configuré le paiement par carte")
        try:
            payment = stripe_client.create_session(
                album_id=group.album_id,
                amount=total,
                seller_routing_id=seller.stripe_account_id,
                commission=commission,
                item_ids=group.item_ids,
                discount_code=discount_code,
                buyer_email=self.session.email,
                mode=self.ui_mode,
                seller_platform_id=seller.id,
                buyer_id=self.handle.user_id,
            )
        except Exception as e:
            logger.exception("checkout.select_method stripe failed album_id=%s", group.album_id)
            return CheckoutResult.fail(ErrorKind.SETTLEMENT, f"Création du paiement impossible: {e}")

        client_secret = payment.get("client_secret")
        checkout_url = payment.get("url")
        if not client_secret and not checkout_url:
            return CheckoutResult.fail(ErrorKind.SETTLEMENT, "Aucune session de paiement retournée")

        self.session.item_ids = group.item_ids
        self.session.method = method
        self.session.client_secret = client_secret
        self.session.checkout_url = checkout_url
        self.session.payment_reference = payment.get("id")
        self.session.step = CheckoutStep.FINISH
        return CheckoutResult.ok(**self._snapshot(total=total))

    async def confirm_transfer(
        self,
        acknowledged: bool,
        group: Optional[CartGroup],
        seller: Optional[SellerPaymentProfile],
    ) -> CheckoutResult:
        """Virement: crée la transaction 'manual_pending' après confirmation explicite de l'acheteur."""
        error = self._require_session() or self._check_group(group)
        if error:
            return error
        if self.session.step != CheckoutStep.FINISH or self.session.method != PaymentMethod.BANK_TRANSFER:
            return CheckoutResult.fail(ErrorKind.VALIDATION, "Aucun virement à confirmer")
        if not acknowledged:
            return CheckoutResult.fail(ErrorKind.VALIDATION, "Veuillez confirmer avoir effectué le virement")
        if seller is None or not seller.bank_transfer_enabled:
            return CheckoutResult.fail(ErrorKind.SETTLEMENT, "Virement non proposé par ce photographe")

        total = total_for_group(group)
        tx = Transaction(
            buyer_id=self.handle.user_id,
            seller_id=seller.id,
            album_id=group.album_id,
            amount=total,
            commission_amount=commission_for(total),
            payment_reference=None,
            status=TransactionStatus.MANUAL_PENDING,
            unlocked_item_ids=group.item_ids,
        )
        try:
            created = payments_repo.insert_transaction(tx)
        except Exception:
            logger.exception("checkout.confirm_transfer insert failed album_id=%s", group.album_id)
            return CheckoutResult.fail(ErrorKind.RECORDING, "Enregistrement du virement impossible, réessayez")

        logger.info("checkout.confirm_transfer tx_id=%s album_id=%s buyer_id=%s", created.id, created.album_id, created.buyer_id)
        self.handle.purchases.remember_transaction(created.id)
        self.session.transaction_id = created.id
        self.session.completed = True
        return CheckoutResult.ok(**self._snapshot(transaction=created.to_public()))

    def back(self) -> CheckoutResult:
        """Recule d'une étape; quitter 'finish' invalide le jeton de paiement."""
        error = self._require_session()
        if error:
            return error
        index = STEP_ORDER.index(self.session.step)
        if index == 0:
            return CheckoutResult.fail(ErrorKind.VALIDATION, "Déjà à la première étape")
        if self.session.step == CheckoutStep.FINISH:
            self.session.client_secret = None
            self.session.checkout_url = None
            self.session.payment_reference = None
            self.session.method = None
        self.session.step = STEP_ORDER[index - 1]
        return CheckoutResult.ok(**self._snapshot())
