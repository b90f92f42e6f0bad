# app/messages.py
# User-facing strings. French is the product's default language.

GENERIC_ERROR = "Une erreur est survenue. Veuillez réessayer."
NETWORK_ERROR = "Impossible de joindre le serveur. Vérifiez votre connexion et réessayez."
SESSION_EXPIRED = "Votre session a expiré. Veuillez vous reconnecter."
RETRY_LATER = "Trop de tentatives. Veuillez réessayer plus tard."

MISSING_DATA = "Données manquantes pour la transaction"
DEPOSIT_STARTED = "Dépôt initié avec succès!"
WITHDRAWAL_STARTED = "Retrait initié avec succès!"
DEPOSIT_FAILED = "Erreur lors de la création du dépôt"
WITHDRAWAL_FAILED = "Erreur lors de la création du retrait"
SUBMISSION_IN_PROGRESS = "Une transaction est déjà en cours d'envoi."

AMOUNT_NOT_POSITIVE = "Le montant doit être supérieur à 0"
AMOUNT_BELOW_MIN = "Le montant minimum est {amount} FCFA"
AMOUNT_ABOVE_MAX = "Le montant maximum est {amount} FCFA"
PLATFORM_MISSING = "Plateforme non sélectionnée"
WITHDRAWAL_CODE_TOO_SHORT = "Le code de retrait doit contenir au moins {length} caractères"

IDENTITY_EMPTY = "Veuillez saisir un ID de pari."
IDENTITY_NOT_FOUND = "Utilisateur non trouvé avec cet ID de pari."
IDENTITY_WRONG_CURRENCY = (
    "Cet utilisateur n'utilise pas la devise {currency}. "
    "Seuls les utilisateurs avec la devise {currency} peuvent être ajoutés."
)
IDENTITY_SEARCH_FAILED = "Erreur lors de la recherche"
IDENTITY_SEARCH_UNAVAILABLE = "Erreur lors de la recherche de l'utilisateur. Veuillez réessayer."
IDENTITY_ADDED = "ID de pari ajouté avec succès"
IDENTITY_UPDATED = "ID de pari modifié avec succès"
IDENTITY_DELETED = "ID de pari supprimé avec succès"
IDENTITY_ADD_FAILED = "Erreur lors de l'ajout de l'ID de pari"
IDENTITY_UPDATE_FAILED = "Erreur lors de la modification de l'ID de pari"

PHONE_ADDED = "Numéro de téléphone ajouté avec succès"
PHONE_UPDATED = "Numéro de téléphone modifié avec succès"
PHONE_DELETED = "Numéro de téléphone supprimé avec succès"
PHONE_INVALID = "Numéro de téléphone invalide"

LOGIN_OK = "Connexion réussie!"
PASSWORD_MISMATCH = "Les mots de passe ne correspondent pas"
PASSWORD_CHANGED = "Mot de passe modifié avec succès"
PROFILE_UPDATED = "Profil mis à jour avec succès"

USSD_COPIED = "Code USSD copié"
