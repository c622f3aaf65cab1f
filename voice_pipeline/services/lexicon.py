"""
Per-language lexicons for local extraction and task generation.

Keyword lists are matched against folded text (lowercase, no diacritics), so
entries may keep their natural spelling and capitalization. Supported
languages are fr, en, es, de, it and pt; anything else falls back to French,
the product's default market.
"""

import calendar
from datetime import datetime, timedelta
from typing import Callable, Dict, Tuple

from voice_pipeline.models.extraction import TaskCategory, UrgencyLevel
from voice_pipeline.models.task import RecurrenceType, TaskPriority


LEXICON_LANGUAGES = ('fr', 'en', 'es', 'de', 'it', 'pt')
FALLBACK_LANGUAGE = 'fr'


def lexicon_language(language: str) -> str:
    """Map a language code to one the lexicons cover."""
    code = (language or '').strip().lower()[:2]
    return code if code in LEXICON_LANGUAGES else FALLBACK_LANGUAGE


# -----------------------------------------------------------------------------
# Category keywords
# -----------------------------------------------------------------------------

CATEGORY_KEYWORDS: Dict[str, Dict[TaskCategory, Tuple[str, ...]]] = {
    'fr': {
        TaskCategory.HEALTH: ('médecin', 'docteur', 'vaccin', 'pharmacie', 'ordonnance', 'dentiste', 'pédiatre', 'urgences', 'hôpital', 'kiné', 'ophtalmo', 'dermato', 'allergie', 'fièvre', 'malade'),
        TaskCategory.EDUCATION: ('école', 'collège', 'lycée', 'devoirs', 'leçons', 'inscription', 'rentrée', 'fournitures', 'professeur', 'notes', 'bulletin', 'réunion parents', 'cantine', 'étude'),
        TaskCategory.ACTIVITIES: ('sport', 'foot', 'tennis', 'natation', 'danse', 'musique', 'piano', 'guitare', 'judo', 'gym', 'équitation', 'club', 'cours', 'entrainement', 'match', 'compétition'),
        TaskCategory.ADMINISTRATIVE: ('papiers', 'carte identité', 'passeport', 'caf', 'assurance', 'mutuelle', 'impôts', 'formulaire', 'attestation', 'certificat', 'dossier', 'mairie'),
        TaskCategory.HOUSEHOLD: ('courses', 'ménage', 'lessive', 'vaisselle', 'rangement', 'aspirateur', 'poubelle', 'jardin', 'bricolage', 'réparer'),
        TaskCategory.TRANSPORT: ('emmener', 'chercher', 'déposer', 'récupérer', 'conduire', 'voiture', 'bus', 'train', 'trajet', 'covoiturage'),
        TaskCategory.SOCIAL: ('anniversaire', 'fête', 'invitation', 'cadeau', 'copain', 'ami', 'soirée pyjama', 'goûter', 'sortie'),
        TaskCategory.FINANCE: ('payer', 'virement', 'argent poche', 'tirelire', 'économies', 'facture', 'frais', 'cotisation'),
        TaskCategory.CLOTHING: ('vêtements', 'chaussures', 'habits', 'pantalon', 'manteau', 'uniforme', 'acheter', 'taille'),
        TaskCategory.FOOD: ('repas', 'goûter', 'petit déjeuner', 'dîner', 'déjeuner', 'recette', 'cuisine', 'menu'),
        TaskCategory.HYGIENE: ('bain', 'douche', 'dents', 'coiffeur', 'shampooing', 'crème', 'poux'),
        TaskCategory.SLEEP: ('coucher', 'dormir', 'lit', 'sieste', 'réveil', 'nuit', 'doudou'),
    },
    'en': {
        TaskCategory.HEALTH: ('doctor', 'vaccine', 'pharmacy', 'prescription', 'dentist', 'pediatrician', 'hospital', 'allergies', 'fever', 'sick', 'medicine', 'appointment', 'checkup'),
        TaskCategory.EDUCATION: ('school', 'homework', 'lessons', 'enrollment', 'supplies', 'teacher', 'grades', 'report card', 'parent meeting', 'cafeteria', 'study'),
        TaskCategory.ACTIVITIES: ('sports', 'soccer', 'tennis', 'swimming', 'dance', 'music', 'piano', 'guitar', 'judo', 'gym', 'club', 'class', 'practice', 'game', 'competition'),
        TaskCategory.ADMINISTRATIVE: ('papers', 'id card', 'passport', 'insurance', 'tax', 'form', 'certificate', 'document', 'city hall'),
        TaskCategory.HOUSEHOLD: ('groceries', 'cleaning', 'laundry', 'dishes', 'organizing', 'vacuum', 'trash', 'garden', 'repair'),
        TaskCategory.TRANSPORT: ('take', 'pick up', 'drop off', 'drive', 'car', 'bus', 'train', 'commute', 'carpool'),
        TaskCategory.SOCIAL: ('birthday', 'party', 'invitation', 'gift', 'friend', 'sleepover', 'playdate', 'outing'),
        TaskCategory.FINANCE: ('pay', 'transfer', 'allowance', 'savings', 'bill', 'fee', 'subscription'),
        TaskCategory.CLOTHING: ('clothes', 'shoes', 'outfit', 'pants', 'coat', 'uniform', 'buy', 'size'),
        TaskCategory.FOOD: ('meal', 'snack', 'breakfast', 'dinner', 'lunch', 'recipe', 'cooking', 'menu'),
        TaskCategory.HYGIENE: ('bath', 'shower', 'teeth', 'haircut', 'shampoo', 'cream', 'lice'),
        TaskCategory.SLEEP: ('bedtime', 'sleep', 'bed', 'nap', 'wake up', 'night'),
    },
    'es': {
        TaskCategory.HEALTH: ('médico', 'doctor', 'vacuna', 'farmacia', 'receta', 'dentista', 'pediatra', 'hospital', 'alergia', 'fiebre', 'enfermo'),
        TaskCategory.EDUCATION: ('escuela', 'colegio', 'deberes', 'lecciones', 'inscripción', 'útiles', 'profesor', 'notas', 'boletín', 'reunión padres', 'comedor'),
        TaskCategory.ACTIVITIES: ('deporte', 'fútbol', 'tenis', 'natación', 'baile', 'música', 'piano', 'guitarra', 'judo', 'gimnasio', 'club', 'clase', 'entrenamiento', 'partido'),
        TaskCategory.ADMINISTRATIVE: ('papeles', 'dni', 'pasaporte', 'seguro', 'impuestos', 'formulario', 'certificado', 'documento', 'ayuntamiento'),
        TaskCategory.HOUSEHOLD: ('compras', 'limpieza', 'colada', 'platos', 'orden', 'aspiradora', 'basura', 'jardín', 'reparar'),
        TaskCategory.TRANSPORT: ('llevar', 'recoger', 'dejar', 'conducir', 'coche', 'bus', 'tren', 'viaje'),
        TaskCategory.SOCIAL: ('cumpleaños', 'fiesta', 'invitación', 'regalo', 'amigo', 'pijamada', 'merienda', 'salida'),
        TaskCategory.FINANCE: ('pagar', 'transferencia', 'paga', 'ahorros', 'factura', 'cuota'),
        TaskCategory.CLOTHING: ('ropa', 'zapatos', 'pantalón', 'abrigo', 'uniforme', 'comprar', 'talla'),
        TaskCategory.FOOD: ('comida', 'merienda', 'desayuno', 'cena', 'almuerzo', 'receta', 'cocina', 'menú'),
        TaskCategory.HYGIENE: ('baño', 'ducha', 'dientes', 'peluquería', 'champú', 'crema', 'piojos'),
        TaskCategory.SLEEP: ('acostar', 'dormir', 'cama', 'siesta', 'despertar', 'noche'),
    },
    'de': {
        TaskCategory.HEALTH: ('Arzt', 'Impfung', 'Apotheke', 'Rezept', 'Zahnarzt', 'Kinderarzt', 'Krankenhaus', 'Allergie', 'Fieber', 'krank'),
        TaskCategory.EDUCATION: ('Schule', 'Hausaufgaben', 'Unterricht', 'Anmeldung', 'Schulsachen', 'Lehrer', 'Noten', 'Zeugnis', 'Elternabend', 'Mensa'),
        TaskCategory.ACTIVITIES: ('Sport', 'Fußball', 'Tennis', 'Schwimmen', 'Tanzen', 'Musik', 'Klavier', 'Gitarre', 'Judo', 'Turnen', 'Verein', 'Kurs', 'Training', 'Spiel'),
        TaskCategory.ADMINISTRATIVE: ('Papiere', 'Ausweis', 'Reisepass', 'Versicherung', 'Steuer', 'Formular', 'Bescheinigung', 'Dokument', 'Rathaus'),
        TaskCategory.HOUSEHOLD: ('Einkaufen', 'Putzen', 'Wäsche', 'Geschirr', 'Aufräumen', 'Staubsaugen', 'Müll', 'Garten', 'Reparieren'),
        TaskCategory.TRANSPORT: ('bringen', 'abholen', 'fahren', 'Auto', 'Bus', 'Zug', 'Fahrt'),
        TaskCategory.SOCIAL: ('Geburtstag', 'Party', 'Einladung', 'Geschenk', 'Freund', 'Übernachtung', 'Ausflug'),
        TaskCategory.FINANCE: ('bezahlen', 'Überweisung', 'Taschengeld', 'Ersparnisse', 'Rechnung', 'Gebühr'),
        TaskCategory.CLOTHING: ('Kleidung', 'Schuhe', 'Hose', 'Mantel', 'Uniform', 'kaufen', 'Größe'),
        TaskCategory.FOOD: ('Essen', 'Snack', 'Frühstück', 'Abendessen', 'Mittagessen', 'Rezept', 'Kochen', 'Menü'),
        TaskCategory.HYGIENE: ('Bad', 'Dusche', 'Zähne', 'Friseur', 'Shampoo', 'Creme', 'Läuse'),
        TaskCategory.SLEEP: ('Schlafenszeit', 'schlafen', 'Bett', 'Nickerchen', 'aufwachen', 'Nacht'),
    },
    'it': {
        TaskCategory.HEALTH: ('medico', 'dottore', 'vaccino', 'farmacia', 'ricetta', 'dentista', 'pediatra', 'ospedale', 'allergia', 'febbre', 'malato'),
        TaskCategory.EDUCATION: ('scuola', 'compiti', 'lezioni', 'iscrizione', 'materiale', 'professore', 'voti', 'pagella', 'riunione genitori', 'mensa'),
        TaskCategory.ACTIVITIES: ('sport', 'calcio', 'tennis', 'nuoto', 'danza', 'musica', 'piano', 'chitarra', 'judo', 'palestra', 'club', 'corso', 'allenamento', 'partita'),
        TaskCategory.ADMINISTRATIVE: ('documenti', 'carta identità', 'passaporto', 'assicurazione', 'tasse', 'modulo', 'certificato', 'documento', 'comune'),
        TaskCategory.HOUSEHOLD: ('spesa', 'pulizia', 'bucato', 'piatti', 'riordinare', 'aspirapolvere', 'spazzatura', 'giardino', 'riparare'),
        TaskCategory.TRANSPORT: ('portare', 'prendere', 'lasciare', 'guidare', 'macchina', 'autobus', 'treno', 'viaggio'),
        TaskCategory.SOCIAL: ('compleanno', 'festa', 'invito', 'regalo', 'amico', 'pigiama party', 'merenda', 'gita'),
        TaskCategory.FINANCE: ('pagare', 'bonifico', 'paghetta', 'risparmi', 'bolletta', 'quota'),
        TaskCategory.CLOTHING: ('vestiti', 'scarpe', 'pantaloni', 'cappotto', 'uniforme', 'comprare', 'taglia'),
        TaskCategory.FOOD: ('pasto', 'merenda', 'colazione', 'cena', 'pranzo', 'ricetta', 'cucina', 'menù'),
        TaskCategory.HYGIENE: ('bagno', 'doccia', 'denti', 'parrucchiere', 'shampoo', 'crema', 'pidocchi'),
        TaskCategory.SLEEP: ('andare a letto', 'dormire', 'letto', 'pisolino', 'sveglia', 'notte'),
    },
    'pt': {
        TaskCategory.HEALTH: ('médico', 'doutor', 'vacina', 'farmácia', 'receita', 'dentista', 'pediatra', 'hospital', 'alergia', 'febre', 'doente'),
        TaskCategory.EDUCATION: ('escola', 'colégio', 'deveres', 'lições', 'inscrição', 'material', 'professor', 'notas', 'boletim', 'reunião pais', 'cantina'),
        TaskCategory.ACTIVITIES: ('esporte', 'futebol', 'tênis', 'natação', 'dança', 'música', 'piano', 'violão', 'judô', 'academia', 'clube', 'aula', 'treino', 'jogo'),
        TaskCategory.ADMINISTRATIVE: ('documentos', 'identidade', 'passaporte', 'seguro', 'impostos', 'formulário', 'certificado', 'documento', 'prefeitura'),
        TaskCategory.HOUSEHOLD: ('compras', 'limpeza', 'roupa', 'louça', 'arrumar', 'aspirador', 'lixo', 'jardim', 'consertar'),
        TaskCategory.TRANSPORT: ('levar', 'buscar', 'deixar', 'dirigir', 'carro', 'ônibus', 'trem', 'viagem'),
        TaskCategory.SOCIAL: ('aniversário', 'festa', 'convite', 'presente', 'amigo', 'pernoite', 'lanche', 'passeio'),
        TaskCategory.FINANCE: ('pagar', 'transferência', 'mesada', 'economias', 'conta', 'taxa'),
        TaskCategory.CLOTHING: ('roupa', 'sapatos', 'calça', 'casaco', 'uniforme', 'comprar', 'tamanho'),
        TaskCategory.FOOD: ('refeição', 'lanche', 'café da manhã', 'jantar', 'almoço', 'receita', 'cozinha', 'cardápio'),
        TaskCategory.HYGIENE: ('banho', 'ducha', 'dentes', 'cabeleireiro', 'xampu', 'creme', 'piolhos'),
        TaskCategory.SLEEP: ('dormir', 'cama', 'soneca', 'acordar', 'noite', 'hora de dormir'),
    },
}


# -----------------------------------------------------------------------------
# Urgency keywords and imperative markers
# -----------------------------------------------------------------------------

URGENCY_KEYWORDS: Dict[str, Dict[UrgencyLevel, Tuple[str, ...]]] = {
    'fr': {
        UrgencyLevel.CRITICAL: ('urgent', 'urgence', "aujourd'hui", 'maintenant', 'immédiatement', 'tout de suite', 'vite', 'absolument', 'impératif', 'critique'),
        UrgencyLevel.HIGH: ('cette semaine', 'bientôt', 'rapidement', 'dès que possible', 'prioritaire', 'important', 'ne pas oublier'),
        UrgencyLevel.MEDIUM: ('ce mois', 'prochainement', 'dans les semaines', 'avant la fin du mois'),
        UrgencyLevel.LOW: ('quand possible', 'éventuellement', 'un jour', 'pas pressé', 'tranquille'),
    },
    'en': {
        UrgencyLevel.CRITICAL: ('urgent', 'emergency', 'today', 'now', 'immediately', 'right away', 'asap', 'critical'),
        UrgencyLevel.HIGH: ('this week', 'soon', 'quickly', 'priority', 'important', "don't forget"),
        UrgencyLevel.MEDIUM: ('this month', 'shortly', 'in the coming weeks', 'before end of month'),
        UrgencyLevel.LOW: ('when possible', 'eventually', 'someday', 'no rush', 'whenever'),
    },
    'es': {
        UrgencyLevel.CRITICAL: ('urgente', 'emergencia', 'hoy', 'ahora', 'inmediatamente', 'ya', 'crítico'),
        UrgencyLevel.HIGH: ('esta semana', 'pronto', 'rápido', 'prioritario', 'importante', 'no olvidar'),
        UrgencyLevel.MEDIUM: ('este mes', 'próximamente', 'en las próximas semanas', 'antes de fin de mes'),
        UrgencyLevel.LOW: ('cuando sea posible', 'eventualmente', 'algún día', 'sin prisa', 'cuando puedas'),
    },
    'de': {
        UrgencyLevel.CRITICAL: ('dringend', 'Notfall', 'heute', 'jetzt', 'sofort', 'unverzüglich', 'kritisch'),
        UrgencyLevel.HIGH: ('diese Woche', 'bald', 'schnell', 'Priorität', 'wichtig', 'nicht vergessen'),
        UrgencyLevel.MEDIUM: ('diesen Monat', 'demnächst', 'in den nächsten Wochen', 'vor Monatsende'),
        UrgencyLevel.LOW: ('wenn möglich', 'irgendwann', 'eines Tages', 'keine Eile', 'wenn Zeit ist'),
    },
    'it': {
        UrgencyLevel.CRITICAL: ('urgente', 'emergenza', 'oggi', 'adesso', 'immediatamente', 'subito', 'critico'),
        UrgencyLevel.HIGH: ('questa settimana', 'presto', 'velocemente', 'prioritario', 'importante', 'non dimenticare'),
        UrgencyLevel.MEDIUM: ('questo mese', 'prossimamente', 'nelle prossime settimane', 'entro fine mese'),
        UrgencyLevel.LOW: ('quando possibile', 'eventualmente', 'un giorno', 'senza fretta', 'quando puoi'),
    },
    'pt': {
        UrgencyLevel.CRITICAL: ('urgente', 'emergência', 'hoje', 'agora', 'imediatamente', 'já', 'crítico'),
        UrgencyLevel.HIGH: ('esta semana', 'em breve', 'rápido', 'prioritário', 'importante', 'não esquecer'),
        UrgencyLevel.MEDIUM: ('este mês', 'proximamente', 'nas próximas semanas', 'antes do fim do mês'),
        UrgencyLevel.LOW: ('quando possível', 'eventualmente', 'um dia', 'sem pressa', 'quando puder'),
    },
}

# Obligation phrasing ("il faut", "must") that lifts none/low urgency to medium
IMPERATIVE_MARKERS: Dict[str, Tuple[str, ...]] = {
    'fr': ('doit', 'dois', 'doivent', 'il faut', 'faut', 'faudrait', 'penser à', 'pense à', 'n\'oublie pas'),
    'en': ('must', 'have to', 'has to', 'need to', 'needs to', 'remember to', 'make sure'),
    'es': ('debe', 'debo', 'hay que', 'tiene que', 'tengo que', 'necesita'),
    'de': ('muss', 'müssen', 'soll', 'sollte', 'denk daran'),
    'it': ('deve', 'devo', 'bisogna', 'occorre', 'ricordati di'),
    'pt': ('deve', 'devo', 'tem que', 'precisa', 'preciso', 'lembrar de'),
}


# -----------------------------------------------------------------------------
# Date phrases
# -----------------------------------------------------------------------------

DateResolver = Callable[[datetime], datetime]


def next_weekday(reference: datetime, weekday: int) -> datetime:
    """
    Next occurrence of `weekday` (Monday=0) strictly after the reference day.

    Naming today's weekday means the same day next week.
    """
    days_ahead = (weekday - reference.weekday()) % 7
    return reference + timedelta(days=days_ahead or 7)


def same_day_next_month(reference: datetime) -> datetime:
    """Same day of month, one month later (clamped to the month's last day)."""
    year = reference.year + (1 if reference.month == 12 else 0)
    month = 1 if reference.month == 12 else reference.month + 1
    day = min(reference.day, calendar.monthrange(year, month)[1])
    return reference.replace(year=year, month=month, day=day)


def _days(n: int) -> DateResolver:
    return lambda d: d + timedelta(days=n)


def _weekday(n: int) -> DateResolver:
    return lambda d: next_weekday(d, n)


def _weekdays(*names: str) -> Dict[str, DateResolver]:
    return {name: _weekday(index) for index, name in enumerate(names)}


DATE_PATTERNS: Dict[str, Dict[str, DateResolver]] = {
    'fr': {
        "aujourd'hui": _days(0),
        'demain': _days(1),
        'après-demain': _days(2),
        **_weekdays('lundi', 'mardi', 'mercredi', 'jeudi', 'vendredi', 'samedi', 'dimanche'),
        'la semaine prochaine': _days(7),
        'le mois prochain': same_day_next_month,
        'ce week-end': _weekday(5),
        'ce soir': _days(0),
    },
    'en': {
        'today': _days(0),
        'tomorrow': _days(1),
        'day after tomorrow': _days(2),
        **_weekdays('monday', 'tuesday', 'wednesday', 'thursday', 'friday', 'saturday', 'sunday'),
        'next week': _days(7),
        'next month': same_day_next_month,
        'this weekend': _weekday(5),
        'tonight': _days(0),
    },
    'es': {
        'hoy': _days(0),
        'mañana': _days(1),
        'pasado mañana': _days(2),
        **_weekdays('lunes', 'martes', 'miércoles', 'jueves', 'viernes', 'sábado', 'domingo'),
        'la próxima semana': _days(7),
        'el próximo mes': same_day_next_month,
        'este fin de semana': _weekday(5),
        'esta noche': _days(0),
    },
    'de': {
        'heute': _days(0),
        'morgen': _days(1),
        'übermorgen': _days(2),
        **_weekdays('montag', 'dienstag', 'mittwoch', 'donnerstag', 'freitag', 'samstag', 'sonntag'),
        'nächste woche': _days(7),
        'nächsten monat': same_day_next_month,
        'dieses wochenende': _weekday(5),
        'heute abend': _days(0),
    },
    'it': {
        'oggi': _days(0),
        'domani': _days(1),
        'dopodomani': _days(2),
        **_weekdays('lunedì', 'martedì', 'mercoledì', 'giovedì', 'venerdì', 'sabato', 'domenica'),
        'la prossima settimana': _days(7),
        'il prossimo mese': same_day_next_month,
        'questo weekend': _weekday(5),
        'stasera': _days(0),
    },
    'pt': {
        'hoje': _days(0),
        'amanhã': _days(1),
        'depois de amanhã': _days(2),
        **_weekdays('segunda', 'terça', 'quarta', 'quinta', 'sexta', 'sábado', 'domingo'),
        'próxima semana': _days(7),
        'próximo mês': same_day_next_month,
        'este fim de semana': _weekday(5),
        'hoje à noite': _days(0),
    },
}

RECURRENCE_PATTERNS: Dict[str, Dict[str, RecurrenceType]] = {
    'fr': {
        'tous les jours': RecurrenceType.DAILY,
        'chaque jour': RecurrenceType.DAILY,
        'chaque semaine': RecurrenceType.WEEKLY,
        'toutes les semaines': RecurrenceType.WEEKLY,
        'chaque mois': RecurrenceType.MONTHLY,
        'tous les mois': RecurrenceType.MONTHLY,
    },
    'en': {
        'every day': RecurrenceType.DAILY,
        'daily': RecurrenceType.DAILY,
        'every week': RecurrenceType.WEEKLY,
        'weekly': RecurrenceType.WEEKLY,
        'every month': RecurrenceType.MONTHLY,
        'monthly': RecurrenceType.MONTHLY,
    },
    'es': {
        'todos los días': RecurrenceType.DAILY,
        'cada semana': RecurrenceType.WEEKLY,
        'cada mes': RecurrenceType.MONTHLY,
    },
    'de': {
        'jeden tag': RecurrenceType.DAILY,
        'jede woche': RecurrenceType.WEEKLY,
        'jeden monat': RecurrenceType.MONTHLY,
    },
    'it': {
        'ogni giorno': RecurrenceType.DAILY,
        'ogni settimana': RecurrenceType.WEEKLY,
        'ogni mese': RecurrenceType.MONTHLY,
    },
    'pt': {
        'todo dia': RecurrenceType.DAILY,
        'toda semana': RecurrenceType.WEEKLY,
        'todo mês': RecurrenceType.MONTHLY,
    },
}


# -----------------------------------------------------------------------------
# Task titles
# -----------------------------------------------------------------------------

TITLE_TEMPLATES: Dict[str, Dict[TaskCategory, Tuple[str, ...]]] = {
    'fr': {
        TaskCategory.HEALTH: ('RDV {action} pour {child}', '{action} - {child}', 'Santé: {action}'),
        TaskCategory.EDUCATION: ('{action} - école de {child}', 'Scolarité: {action}', '{action} pour {child}'),
        TaskCategory.ACTIVITIES: ('{action} - {child}', 'Activité: {action}', '{child}: {action}'),
        TaskCategory.ADMINISTRATIVE: ('Admin: {action}', '{action} - papiers', 'Démarche: {action}'),
        TaskCategory.HOUSEHOLD: ('Maison: {action}', '{action}', 'À faire: {action}'),
        TaskCategory.TRANSPORT: ('Emmener {child} {action}', 'Transport: {action}', '{action} {child}'),
        TaskCategory.SOCIAL: ('{action} - {child}', 'Social: {action}', 'Événement: {action}'),
        TaskCategory.FINANCE: ('Payer: {action}', 'Finance: {action}', '{action}'),
        TaskCategory.CLOTHING: ('Vêtements: {action} pour {child}', '{action} - {child}', 'Acheter: {action}'),
        TaskCategory.FOOD: ('Repas: {action}', '{action}', 'Cuisine: {action}'),
        TaskCategory.HYGIENE: ('Hygiène: {action} pour {child}', '{action} - {child}', '{child}: {action}'),
        TaskCategory.SLEEP: ('Sommeil: {action}', '{action} - {child}', 'Routine: {action}'),
        TaskCategory.OTHER: ('{action}', 'À faire: {action}', 'Tâche: {action}'),
    },
    'en': {
        TaskCategory.HEALTH: ('Appointment: {action} for {child}', '{action} - {child}', 'Health: {action}'),
        TaskCategory.EDUCATION: ("{action} - {child}'s school", 'Education: {action}', '{action} for {child}'),
        TaskCategory.ACTIVITIES: ('{action} - {child}', 'Activity: {action}', '{child}: {action}'),
        TaskCategory.ADMINISTRATIVE: ('Admin: {action}', '{action} - paperwork', 'Task: {action}'),
        TaskCategory.HOUSEHOLD: ('Home: {action}', '{action}', 'To do: {action}'),
        TaskCategory.TRANSPORT: ('Take {child} {action}', 'Transport: {action}', '{action} {child}'),
        TaskCategory.SOCIAL: ('{action} - {child}', 'Social: {action}', 'Event: {action}'),
        TaskCategory.FINANCE: ('Pay: {action}', 'Finance: {action}', '{action}'),
        TaskCategory.CLOTHING: ('Clothes: {action} for {child}', '{action} - {child}', 'Buy: {action}'),
        TaskCategory.FOOD: ('Meal: {action}', '{action}', 'Cooking: {action}'),
        TaskCategory.HYGIENE: ('Hygiene: {action} for {child}', '{action} - {child}', '{child}: {action}'),
        TaskCategory.SLEEP: ('Sleep: {action}', '{action} - {child}', 'Routine: {action}'),
        TaskCategory.OTHER: ('{action}', 'To do: {action}', 'Task: {action}'),
    },
    'es': {
        TaskCategory.HEALTH: ('Cita: {action} para {child}', '{action} - {child}', 'Salud: {action}'),
        TaskCategory.EDUCATION: ('{action} - escuela de {child}', 'Educación: {action}', '{action} para {child}'),
        TaskCategory.ACTIVITIES: ('{action} - {child}', 'Actividad: {action}', '{child}: {action}'),
        TaskCategory.ADMINISTRATIVE: ('Admin: {action}', '{action} - papeles', 'Trámite: {action}'),
        TaskCategory.HOUSEHOLD: ('Casa: {action}', '{action}', 'Por hacer: {action}'),
        TaskCategory.TRANSPORT: ('Llevar a {child} {action}', 'Transporte: {action}', '{action} {child}'),
        TaskCategory.SOCIAL: ('{action} - {child}', 'Social: {action}', 'Evento: {action}'),
        TaskCategory.FINANCE: ('Pagar: {action}', 'Finanzas: {action}', '{action}'),
        TaskCategory.CLOTHING: ('Ropa: {action} para {child}', '{action} - {child}', 'Comprar: {action}'),
        TaskCategory.FOOD: ('Comida: {action}', '{action}', 'Cocina: {action}'),
        TaskCategory.HYGIENE: ('Higiene: {action} para {child}', '{action} - {child}', '{child}: {action}'),
        TaskCategory.SLEEP: ('Sueño: {action}', '{action} - {child}', 'Rutina: {action}'),
        TaskCategory.OTHER: ('{action}', 'Por hacer: {action}', 'Tarea: {action}'),
    },
    'de': {
        TaskCategory.HEALTH: ('Termin: {action} für {child}', '{action} - {child}', 'Gesundheit: {action}'),
        TaskCategory.EDUCATION: ('{action} - Schule von {child}', 'Bildung: {action}', '{action} für {child}'),
        TaskCategory.ACTIVITIES: ('{action} - {child}', 'Aktivität: {action}', '{child}: {action}'),
        TaskCategory.ADMINISTRATIVE: ('Admin: {action}', '{action} - Papiere', 'Aufgabe: {action}'),
        TaskCategory.HOUSEHOLD: ('Haushalt: {action}', '{action}', 'Zu erledigen: {action}'),
        TaskCategory.TRANSPORT: ('{child} bringen {action}', 'Transport: {action}', '{action} {child}'),
        TaskCategory.SOCIAL: ('{action} - {child}', 'Sozial: {action}', 'Ereignis: {action}'),
        TaskCategory.FINANCE: ('Bezahlen: {action}', 'Finanzen: {action}', '{action}'),
        TaskCategory.CLOTHING: ('Kleidung: {action} für {child}', '{action} - {child}', 'Kaufen: {action}'),
        TaskCategory.FOOD: ('Essen: {action}', '{action}', 'Kochen: {action}'),
        TaskCategory.HYGIENE: ('Hygiene: {action} für {child}', '{action} - {child}', '{child}: {action}'),
        TaskCategory.SLEEP: ('Schlaf: {action}', '{action} - {child}', 'Routine: {action}'),
        TaskCategory.OTHER: ('{action}', 'Zu erledigen: {action}', 'Aufgabe: {action}'),
    },
    'it': {
        TaskCategory.HEALTH: ('Appuntamento: {action} per {child}', '{action} - {child}', 'Salute: {action}'),
        TaskCategory.EDUCATION: ('{action} - scuola di {child}', 'Istruzione: {action}', '{action} per {child}'),
        TaskCategory.ACTIVITIES: ('{action} - {child}', 'Attività: {action}', '{child}: {action}'),
        TaskCategory.ADMINISTRATIVE: ('Admin: {action}', '{action} - documenti', 'Compito: {action}'),
        TaskCategory.HOUSEHOLD: ('Casa: {action}', '{action}', 'Da fare: {action}'),
        TaskCategory.TRANSPORT: ('Portare {child} {action}', 'Trasporto: {action}', '{action} {child}'),
        TaskCategory.SOCIAL: ('{action} - {child}', 'Sociale: {action}', 'Evento: {action}'),
        TaskCategory.FINANCE: ('Pagare: {action}', 'Finanze: {action}', '{action}'),
        TaskCategory.CLOTHING: ('Vestiti: {action} per {child}', '{action} - {child}', 'Comprare: {action}'),
        TaskCategory.FOOD: ('Pasto: {action}', '{action}', 'Cucina: {action}'),
        TaskCategory.HYGIENE: ('Igiene: {action} per {child}', '{action} - {child}', '{child}: {action}'),
        TaskCategory.SLEEP: ('Sonno: {action}', '{action} - {child}', 'Routine: {action}'),
        TaskCategory.OTHER: ('{action}', 'Da fare: {action}', 'Compito: {action}'),
    },
    'pt': {
        TaskCategory.HEALTH: ('Consulta: {action} para {child}', '{action} - {child}', 'Saúde: {action}'),
        TaskCategory.EDUCATION: ('{action} - escola de {child}', 'Educação: {action}', '{action} para {child}'),
        TaskCategory.ACTIVITIES: ('{action} - {child}', 'Atividade: {action}', '{child}: {action}'),
        TaskCategory.ADMINISTRATIVE: ('Admin: {action}', '{action} - papéis', 'Tarefa: {action}'),
        TaskCategory.HOUSEHOLD: ('Casa: {action}', '{action}', 'A fazer: {action}'),
        TaskCategory.TRANSPORT: ('Levar {child} {action}', 'Transporte: {action}', '{action} {child}'),
        TaskCategory.SOCIAL: ('{action} - {child}', 'Social: {action}', 'Evento: {action}'),
        TaskCategory.FINANCE: ('Pagar: {action}', 'Finanças: {action}', '{action}'),
        TaskCategory.CLOTHING: ('Roupas: {action} para {child}', '{action} - {child}', 'Comprar: {action}'),
        TaskCategory.FOOD: ('Refeição: {action}', '{action}', 'Cozinha: {action}'),
        TaskCategory.HYGIENE: ('Higiene: {action} para {child}', '{action} - {child}', '{child}: {action}'),
        TaskCategory.SLEEP: ('Sono: {action}', '{action} - {child}', 'Rotina: {action}'),
        TaskCategory.OTHER: ('{action}', 'A fazer: {action}', 'Tarefa: {action}'),
    },
}


# -----------------------------------------------------------------------------
# Charge weights
# -----------------------------------------------------------------------------

# (mental, time, emotional, physical) on a 0-10 scale
CATEGORY_CHARGE_WEIGHTS: Dict[TaskCategory, Tuple[float, float, float, float]] = {
    TaskCategory.HEALTH: (7, 5, 6, 2),
    TaskCategory.EDUCATION: (6, 4, 5, 1),
    TaskCategory.ACTIVITIES: (4, 5, 3, 4),
    TaskCategory.ADMINISTRATIVE: (8, 3, 4, 1),
    TaskCategory.HOUSEHOLD: (3, 5, 2, 6),
    TaskCategory.TRANSPORT: (2, 6, 2, 3),
    TaskCategory.SOCIAL: (4, 4, 5, 2),
    TaskCategory.FINANCE: (7, 2, 4, 1),
    TaskCategory.CLOTHING: (3, 4, 2, 3),
    TaskCategory.FOOD: (3, 5, 2, 4),
    TaskCategory.HYGIENE: (2, 3, 3, 3),
    TaskCategory.SLEEP: (3, 4, 4, 2),
    TaskCategory.OTHER: (4, 4, 3, 3),
}

PRIORITY_MULTIPLIERS: Dict[TaskPriority, float] = {
    TaskPriority.CRITICAL: 1.5,
    TaskPriority.HIGH: 1.2,
    TaskPriority.MEDIUM: 1.0,
    TaskPriority.LOW: 0.8,
}

URGENCY_TO_PRIORITY: Dict[UrgencyLevel, TaskPriority] = {
    UrgencyLevel.CRITICAL: TaskPriority.CRITICAL,
    UrgencyLevel.HIGH: TaskPriority.HIGH,
    UrgencyLevel.MEDIUM: TaskPriority.MEDIUM,
    UrgencyLevel.LOW: TaskPriority.LOW,
    UrgencyLevel.NONE: TaskPriority.MEDIUM,
}
